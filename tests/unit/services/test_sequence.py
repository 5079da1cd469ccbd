"""
Tests for order id renumbering.
"""

import asyncio

import pytest
from sqlalchemy import select

from ordercrm.models.order import Order
from ordercrm.services.sequence import OrderSequenceRenumberer, RenumberResult


def _order_id(order: Order):
    return order.get_field_value("order_id")


@pytest.mark.asyncio
async def test_renumber_assigns_rank_by_creation_time(db_session, renumberer, make_order):
    """Ids follow creation order across types and shops."""
    first = await make_order({"order_type": "A", "shop_name": "S1"}, minutes=0)
    second = await make_order({"order_type": "B", "shop_name": "S2"}, minutes=1)
    third = await make_order({"order_type": "A", "shop_name": "S1"}, minutes=2)

    result = await renumberer.renumber(db_session)

    assert result.total == 3
    assert result.updated == 3
    assert result.ok
    assert _order_id(first) == "AMA-S1-1"
    assert _order_id(second) == "AMB-S2-2"
    assert _order_id(third) == "AMA-S1-3"


@pytest.mark.asyncio
async def test_renumber_after_delete_closes_gap(db_session, renumberer, make_order):
    first = await make_order({"order_type": "A", "shop_name": "S1"}, minutes=0)
    second = await make_order({"order_type": "B", "shop_name": "S2"}, minutes=1)
    third = await make_order({"order_type": "A", "shop_name": "S1"}, minutes=2)
    await renumberer.renumber(db_session)

    await db_session.delete(first)
    await db_session.commit()
    await renumberer.renumber(db_session)

    assert _order_id(second) == "AMB-S2-1"
    assert _order_id(third) == "AMA-S1-2"


@pytest.mark.asyncio
async def test_creation_time_ties_are_broken_by_id(db_session, renumberer, make_order):
    first = await make_order({"order_type": "A", "shop_name": "S1"}, minutes=5)
    second = await make_order({"order_type": "A", "shop_name": "S1"}, minutes=5)

    await renumberer.renumber(db_session)

    assert first.id < second.id
    assert _order_id(first) == "AMA-S1-1"
    assert _order_id(second) == "AMA-S1-2"


@pytest.mark.asyncio
async def test_incomplete_orders_keep_id_but_take_a_rank(db_session, renumberer, make_order):
    first = await make_order({"order_type": "A", "shop_name": "S1"}, minutes=0)
    blank = await make_order({"order_type": " ", "shop_name": "S1", "order_id": "OLD-7"}, minutes=1)
    no_shop = await make_order({"order_type": "B"}, minutes=2)
    last = await make_order({"order_type": "A", "shop_name": "S1"}, minutes=3)

    result = await renumberer.renumber(db_session)

    assert result.skipped == 2
    assert result.updated == 2
    assert _order_id(first) == "AMA-S1-1"
    assert _order_id(blank) == "OLD-7"
    assert _order_id(no_shop) is None
    assert _order_id(last) == "AMA-S1-4"


@pytest.mark.asyncio
async def test_second_pass_changes_nothing(db_session, renumberer, make_order):
    for minute in range(3):
        await make_order({"order_type": "A", "shop_name": "S1"}, minutes=minute)

    await renumberer.renumber(db_session)
    result = await renumberer.renumber(db_session)

    assert result.total == 3
    assert result.unchanged == 3
    assert result.updated == 0


@pytest.mark.asyncio
async def test_renumber_keeps_other_data_and_updated_at(db_session, renumberer, make_order):
    order = await make_order(
        {"order_type": "A", "shop_name": "S1", "note": "fragile", "qty": 3},
        minutes=0,
    )
    before = order.updated_at

    await renumberer.renumber(db_session)

    row = (
        await db_session.execute(select(Order.updated_at, Order.data).where(Order.id == order.id))
    ).one()
    await db_session.commit()

    assert row.updated_at.replace(tzinfo=None) == before.replace(tzinfo=None)
    data = Order.decode_data(row.data)
    assert data == {
        "order_type": "A",
        "shop_name": "S1",
        "note": "fragile",
        "qty": 3,
        "order_id": "AMA-S1-1",
    }


@pytest.mark.asyncio
async def test_failed_row_does_not_stop_the_pass(db_session, renumberer, make_order, monkeypatch):
    first = await make_order({"order_type": "A", "shop_name": "S1"}, minutes=0)
    broken = await make_order({"order_type": "A", "shop_name": "S1"}, minutes=1)
    last = await make_order({"order_type": "A", "shop_name": "S1"}, minutes=2)

    write = renumberer._write_data

    async def flaky_write(session, order, data):
        if order.id == broken.id:
            raise RuntimeError("disk full")
        await write(session, order, data)

    monkeypatch.setattr(renumberer, "_write_data", flaky_write)

    result = await renumberer.renumber(db_session)

    assert result.failed == [broken.id]
    assert not result.ok
    assert result.updated == 2
    assert _order_id(first) == "AMA-S1-1"
    assert _order_id(broken) is None
    assert _order_id(last) == "AMA-S1-3"


@pytest.mark.asyncio
async def test_renumber_with_own_session(db_session, renumberer, make_order):
    order = await make_order({"order_type": "A", "shop_name": "S1"}, minutes=0)

    result = await renumberer.renumber()

    assert result.updated == 1
    reloaded = (
        await db_session.execute(
            select(Order).where(Order.id == order.id).execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert _order_id(reloaded) == "AMA-S1-1"


@pytest.mark.asyncio
async def test_concurrent_passes_are_serialized(renumberer, make_order):
    for minute in range(3):
        await make_order({"order_type": "A", "shop_name": "S1"}, minutes=minute)

    results = await asyncio.gather(renumberer.renumber(), renumberer.renumber())

    assert sorted(r.updated for r in results) == [0, 3]
    assert sorted(r.unchanged for r in results) == [0, 3]


@pytest.mark.asyncio
async def test_empty_store(db_session, renumberer):
    result = await renumberer.renumber(db_session)
    assert result == RenumberResult()


class TestFormatOrderId:
    """Tests for the id format."""

    def test_default_prefix(self):
        renumberer = OrderSequenceRenumberer()
        assert renumberer.format_order_id("FBA", "Shop-1", 12) == "AMFBA-Shop-1-12"

    def test_custom_prefix(self):
        renumberer = OrderSequenceRenumberer(prefix="")
        assert renumberer.format_order_id("A", "S1", 1) == "A-S1-1"
