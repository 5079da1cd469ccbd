"""
Tests for FieldService.
"""

import pytest

from ordercrm.core.exceptions import (
    DuplicateError,
    FieldNotFoundError,
    PermissionDeniedError,
    UnresolvedReferenceError,
    ValidationError,
)
from ordercrm.models.field import FieldType
from ordercrm.schemas.field import FieldCreate, FieldResponse, FieldSortItem, FieldUpdate
from ordercrm.services.field import FieldService


@pytest.fixture
def field_service() -> FieldService:
    return FieldService()


async def _add(service, db, user_id, name, field_type, **kwargs):
    data = FieldCreate(name=name, label=kwargs.pop("label", name.title()), field_type=field_type, **kwargs)
    return await service.create_field(db, user_id, data)


@pytest.mark.asyncio
async def test_create_field_appends_to_catalog(db_session, admin_user, field_service):
    price = await _add(field_service, db_session, admin_user.id, "price", FieldType.CURRENCY)
    qty = await _add(field_service, db_session, admin_user.id, "qty", FieldType.NUMBER)

    assert price.field_type == "currency"
    assert price.created_by_id == admin_user.id
    assert (price.sort_order, qty.sort_order) == (1, 2)
    assert [f.name for f in await field_service.list_fields(db_session)] == ["price", "qty"]


@pytest.mark.asyncio
async def test_create_requires_admin(db_session, operator_user, field_service):
    with pytest.raises(PermissionDeniedError):
        await _add(field_service, db_session, operator_user.id, "price", FieldType.CURRENCY)


@pytest.mark.asyncio
async def test_duplicate_name(db_session, admin_user, field_service):
    await _add(field_service, db_session, admin_user.id, "price", FieldType.CURRENCY)

    with pytest.raises(DuplicateError) as exc_info:
        await _add(field_service, db_session, admin_user.id, "price", FieldType.NUMBER)

    assert exc_info.value.details["field"] == "name"


@pytest.mark.asyncio
async def test_select_options_are_cleaned(db_session, admin_user, field_service):
    field = await _add(
        field_service,
        db_session,
        admin_user.id,
        "order_type",
        FieldType.SELECT,
        options=["FBA", " FBA ", "FBM", ""],
    )
    assert field.get_options() == ["FBA", "FBM"]

    response = FieldResponse.model_validate(field)
    assert response.options == ["FBA", "FBM"]
    assert response.field_type == FieldType.SELECT


@pytest.mark.asyncio
async def test_formula_field_checked_against_numeric_fields(db_session, admin_user, field_service):
    await _add(field_service, db_session, admin_user.id, "price", FieldType.CURRENCY)
    await _add(field_service, db_session, admin_user.id, "qty", FieldType.NUMBER)
    await _add(field_service, db_session, admin_user.id, "note", FieldType.TEXT)

    total = await _add(
        field_service, db_session, admin_user.id, "total", FieldType.FORMULA, options=[" price * qty "]
    )
    assert total.formula == "price * qty"
    assert total.is_computed

    with pytest.raises(UnresolvedReferenceError) as exc_info:
        await _add(
            field_service, db_session, admin_user.id, "bad", FieldType.FORMULA, options=["price * note"]
        )
    assert exc_info.value.details["names"] == ["note"]


@pytest.mark.asyncio
async def test_formula_field_requires_expression(db_session, admin_user, field_service):
    with pytest.raises(ValidationError):
        await _add(field_service, db_session, admin_user.id, "total", FieldType.FORMULA, options=[])


@pytest.mark.asyncio
async def test_update_field(db_session, admin_user, field_service):
    field = await _add(field_service, db_session, admin_user.id, "note", FieldType.TEXT)

    updated = await field_service.update_field(
        db_session,
        admin_user.id,
        field.id,
        FieldUpdate(name="note", label="Remarks", is_hidden=True),
    )

    assert updated.label == "Remarks"
    assert updated.is_hidden is True
    assert await field_service.list_fields(db_session, include_hidden=False) == []


@pytest.mark.asyncio
async def test_field_name_is_immutable(db_session, admin_user, field_service):
    field = await _add(field_service, db_session, admin_user.id, "note", FieldType.TEXT)

    with pytest.raises(ValidationError):
        await field_service.update_field(
            db_session, admin_user.id, field.id, FieldUpdate(name="remark")
        )


@pytest.mark.asyncio
async def test_type_change_rechecks_options(db_session, admin_user, field_service):
    field = await _add(field_service, db_session, admin_user.id, "channel", FieldType.TEXT)

    updated = await field_service.update_field(
        db_session,
        admin_user.id,
        field.id,
        FieldUpdate(field_type=FieldType.SELECT, options=["web", "web", "phone"]),
    )

    assert updated.field_type == "select"
    assert updated.get_options() == ["web", "phone"]


@pytest.mark.asyncio
async def test_reorder_fields(db_session, admin_user, field_service):
    a = await _add(field_service, db_session, admin_user.id, "a", FieldType.TEXT)
    b = await _add(field_service, db_session, admin_user.id, "b", FieldType.TEXT)

    fields = await field_service.reorder_fields(
        db_session,
        admin_user.id,
        [FieldSortItem(id=a.id, sort_order=5), FieldSortItem(id=b.id, sort_order=1)],
    )

    assert [f.name for f in fields] == ["b", "a"]


@pytest.mark.asyncio
async def test_reorder_unknown_field(db_session, admin_user, field_service):
    a = await _add(field_service, db_session, admin_user.id, "a", FieldType.TEXT)

    with pytest.raises(FieldNotFoundError):
        await field_service.reorder_fields(
            db_session,
            admin_user.id,
            [FieldSortItem(id=a.id, sort_order=3), FieldSortItem(id=404, sort_order=1)],
        )
    assert a.sort_order == 1


@pytest.mark.asyncio
async def test_delete_field(db_session, admin_user, field_service):
    field = await _add(field_service, db_session, admin_user.id, "note", FieldType.TEXT)

    await field_service.delete_field(db_session, admin_user.id, field.id)

    with pytest.raises(FieldNotFoundError):
        await field_service.get_field(db_session, field.id)


@pytest.mark.asyncio
async def test_numeric_fields(db_session, admin_user, field_service):
    await _add(field_service, db_session, admin_user.id, "price", FieldType.CURRENCY)
    await _add(field_service, db_session, admin_user.id, "note", FieldType.TEXT)
    await _add(field_service, db_session, admin_user.id, "qty", FieldType.NUMBER)

    numeric = await field_service.get_numeric_fields(db_session)

    assert [f.name for f in numeric] == ["price", "qty"]
