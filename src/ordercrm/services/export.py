"""Order export service (CSV and Excel)."""

import csv
from datetime import datetime
from io import BytesIO, StringIO
from typing import Any, Optional

from openpyxl import Workbook
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ordercrm.core.logging import LoggerMixin
from ordercrm.fields import CurrencyFieldHandler, get_field_handler
from ordercrm.models.field import FieldDefinition, FieldType
from ordercrm.models.user import User
from ordercrm.services.order import OrderService

# Fixed leading columns
BASE_HEADERS = ["订单ID", "创建者", "创建时间", "更新时间"]

# Cells starting with these are read as formulas by spreadsheet programs
_FORMULA_PREFIXES = ("=", "+", "-", "@")

# Prepended to CSV output so Excel detects UTF-8
UTF8_BOM = "\ufeff"


def neutralize_cell(value: Any) -> Any:
    """Quote text a spreadsheet would otherwise evaluate as a formula."""
    if isinstance(value, str) and value.startswith(_FORMULA_PREFIXES):
        return f"'{value}"
    return value


class ExportService(LoggerMixin):
    """Service for exporting orders with their visible fields."""

    def __init__(self, orders: Optional[OrderService] = None) -> None:
        self.orders = orders or OrderService()

    async def export_orders_csv(self, db: AsyncSession, user_id: int) -> bytes:
        """Export all orders as UTF-8 CSV with a byte order mark.

        Args:
            db: Database session
            user_id: User ID requesting the export

        Returns:
            CSV file content

        """
        headers, rows = await self._build_rows(db, user_id)

        output = StringIO()
        writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(headers)
        for row in rows:
            writer.writerow(["" if cell is None else neutralize_cell(cell) for cell in row])

        self.logger.info("Orders exported", extra={"format": "csv", "rows": len(rows)})
        return (UTF8_BOM + output.getvalue()).encode("utf-8")

    async def export_orders_xlsx(self, db: AsyncSession, user_id: int) -> bytes:
        """Export all orders as an Excel workbook.

        Returns:
            XLSX file content

        """
        headers, rows = await self._build_rows(db, user_id)

        workbook = Workbook()
        worksheet = workbook.active
        worksheet.title = "订单数据"

        worksheet.append(headers)
        for row in rows:
            worksheet.append(["" if cell is None else neutralize_cell(cell) for cell in row])

        output = BytesIO()
        workbook.save(output)
        output.seek(0)

        self.logger.info("Orders exported", extra={"format": "xlsx", "rows": len(rows)})
        return output.read()

    async def _build_rows(
        self,
        db: AsyncSession,
        user_id: int,
    ) -> tuple[list[str], list[list[Any]]]:
        fields = await self.orders.fields.list_fields(db, include_hidden=False)
        orders = await self.orders.list_orders(db, user_id)

        usernames = dict((await db.execute(select(User.id, User.username))).all())
        # Formulas may reference hidden numeric fields too
        all_fields = await self.orders.fields.list_fields(db)

        headers = BASE_HEADERS + [f.label for f in fields]
        rows = []
        for order in orders:
            data = order.get_all_values()
            computed = self.orders.compute_formula_values(data, all_fields)
            row: list[Any] = [
                order.id,
                usernames.get(order.created_by_id, ""),
                _format_timestamp(order.created_at),
                _format_timestamp(order.updated_at),
            ]
            row.extend(self._format_value(f, data, computed) for f in fields)
            rows.append(row)
        return headers, rows

    def _format_value(
        self,
        field: FieldDefinition,
        data: dict[str, Any],
        computed: dict[str, Any],
    ) -> str:
        if field.is_computed:
            value = computed.get(field.name)
        else:
            value = data.get(field.name)
        if value is None or value == "":
            return ""

        if field.field_type == FieldType.CURRENCY.value:
            symbol = data.get(CurrencyFieldHandler.symbol_key(field.name))
            return CurrencyFieldHandler.format_display(value, symbol=symbol)

        handler = get_field_handler(field.field_type)
        if handler is None:
            return str(value)
        try:
            return handler.format_display(value, field.get_options())
        except (TypeError, ValueError):
            return str(value)


def _format_timestamp(moment: Optional[datetime]) -> str:
    if moment is None:
        return ""
    return moment.strftime("%Y-%m-%d %H:%M:%S")
