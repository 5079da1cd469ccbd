"""
Pytest configuration and fixtures for ordercrm tests.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ordercrm.db.session import create_engine, create_session_factory, init_db
from ordercrm.models.field import FieldDefinition, FieldType
from ordercrm.models.order import Order
from ordercrm.models.user import User, UserRole, UserShopPermission
from ordercrm.services.order import OrderService
from ordercrm.services.sequence import OrderSequenceRenumberer

# Fixed base time so creation order is explicit in tests
BASE_TIME = datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine per test function."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        # Rollback any uncommitted changes
        await session.rollback()


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an administrator."""
    user = User(
        username="admin",
        email="admin@example.com",
        role=UserRole.ADMIN.value,
        shop_permissions=[],
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def operator_user(db_session: AsyncSession) -> User:
    """Create an operator with access to shop S1."""
    user = User(
        username="operator",
        email="operator@example.com",
        role=UserRole.OPERATOR.value,
        shop_permissions=[UserShopPermission(shop_name="S1")],
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def renumberer(session_factory: async_sessionmaker[AsyncSession]) -> OrderSequenceRenumberer:
    return OrderSequenceRenumberer(session_factory)


@pytest.fixture
def order_service(renumberer: OrderSequenceRenumberer) -> OrderService:
    return OrderService(renumberer=renumberer)


@pytest.fixture
def make_order(db_session: AsyncSession):
    """Factory inserting an order created ``minutes`` after BASE_TIME."""

    async def _make(
        data: dict[str, Any],
        minutes: int = 0,
        created_by_id: int | None = None,
    ) -> Order:
        created_at = BASE_TIME + timedelta(minutes=minutes)
        order = Order(
            created_at=created_at,
            updated_at=created_at,
            created_by_id=created_by_id,
        )
        order.set_all_values(data)
        db_session.add(order)
        await db_session.commit()
        return order

    return _make


@pytest.fixture
def make_field(db_session: AsyncSession):
    """Factory inserting a field definition directly."""

    async def _make(
        name: str,
        field_type: FieldType,
        label: str | None = None,
        options: list[str] | None = None,
        is_required: bool = False,
        is_hidden: bool = False,
        sort_order: int = 0,
    ) -> FieldDefinition:
        field = FieldDefinition(
            name=name,
            label=label or name,
            field_type=field_type.value,
            is_required=is_required,
            is_hidden=is_hidden,
            sort_order=sort_order,
        )
        field.set_options(options)
        db_session.add(field)
        await db_session.commit()
        return field

    return _make
