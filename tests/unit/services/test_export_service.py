"""
Tests for order export.
"""

import csv
from io import BytesIO, StringIO

import pytest
import pytest_asyncio
from openpyxl import load_workbook

from ordercrm.models.field import FieldType
from ordercrm.services.export import BASE_HEADERS, ExportService, neutralize_cell

TIMESTAMP = "2024-03-15 09:00:00"


@pytest.fixture
def export_service(order_service) -> ExportService:
    return ExportService(order_service)


@pytest_asyncio.fixture
async def catalog(make_field):
    await make_field("order_type", FieldType.SELECT, options=["A", "B"], sort_order=1)
    await make_field("price", FieldType.CURRENCY, sort_order=2)
    await make_field("qty", FieldType.NUMBER, sort_order=3)
    await make_field("total", FieldType.FORMULA, options=["price * qty"], sort_order=4)
    await make_field("secret", FieldType.TEXT, is_hidden=True, sort_order=5)
    await make_field("note", FieldType.TEXT, sort_order=6)


@pytest_asyncio.fixture
async def orders(admin_user, make_order, catalog):
    first = await make_order(
        {
            "order_type": "A",
            "price": 12.5,
            "price_currency": "$",
            "qty": 2,
            "secret": "do not export",
            "note": "=HYPERLINK(1)",
        },
        minutes=0,
        created_by_id=admin_user.id,
    )
    second = await make_order({"order_type": "B"}, minutes=0)
    return first, second


EXPECTED_HEADERS = BASE_HEADERS + ["order_type", "price", "qty", "total", "note"]


@pytest.mark.asyncio
@pytest.mark.filterwarnings("error::sqlalchemy.exc.SADeprecationWarning")
async def test_export_csv(db_session, admin_user, export_service, orders):
    first, second = orders

    content = await export_service.export_orders_csv(db_session, admin_user.id)

    assert content.startswith(b"\xef\xbb\xbf")
    rows = list(csv.reader(StringIO(content.decode("utf-8-sig"))))
    assert rows[0] == EXPECTED_HEADERS
    assert rows[1] == [
        str(first.id),
        "admin",
        TIMESTAMP,
        TIMESTAMP,
        "A",
        "$12.50",
        "2",
        "25.00",
        "'=HYPERLINK(1)",
    ]
    assert rows[2] == [str(second.id), "", TIMESTAMP, TIMESTAMP, "B", "", "", "0.00", ""]
    assert len(rows) == 3


@pytest.mark.asyncio
async def test_csv_quotes_every_cell(db_session, admin_user, export_service, orders):
    content = await export_service.export_orders_csv(db_session, admin_user.id)

    header_line = content.decode("utf-8-sig").split("\n")[0]
    assert header_line == ",".join(f'"{h}"' for h in EXPECTED_HEADERS)


@pytest.mark.asyncio
async def test_export_xlsx(db_session, admin_user, export_service, orders):
    first, _ = orders

    content = await export_service.export_orders_xlsx(db_session, admin_user.id)

    workbook = load_workbook(BytesIO(content))
    worksheet = workbook.active
    assert worksheet.title == "订单数据"

    rows = list(worksheet.iter_rows(values_only=True))
    assert list(rows[0]) == EXPECTED_HEADERS
    assert list(rows[1]) == [
        first.id,
        "admin",
        TIMESTAMP,
        TIMESTAMP,
        "A",
        "$12.50",
        "2",
        "25.00",
        "'=HYPERLINK(1)",
    ]
    assert len(rows) == 3


@pytest.mark.asyncio
async def test_export_without_orders(db_session, admin_user, export_service, catalog):
    content = await export_service.export_orders_csv(db_session, admin_user.id)

    rows = list(csv.reader(StringIO(content.decode("utf-8-sig"))))
    assert rows == [EXPECTED_HEADERS]


class TestNeutralizeCell:
    """Tests for spreadsheet formula neutralization."""

    @pytest.mark.parametrize("value", ["=1+1", "+1", "-2", "@SUM(A1)"])
    def test_formula_like_text(self, value):
        assert neutralize_cell(value) == f"'{value}"

    def test_plain_values(self):
        assert neutralize_cell("ABC") == "ABC"
        assert neutralize_cell(-2) == -2
