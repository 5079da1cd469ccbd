"""Order sequence renumbering.

Every order carries a display identifier ``<prefix><type>-<shop>-<row>``
where ``row`` is the order's 1-based rank by creation time. Inserting or
deleting an order shifts the rank of every later order, so the whole
sequence is recomputed after each such change.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.attributes import set_committed_value

from ordercrm.core.config import settings
from ordercrm.core.exceptions import RowUpdateFailedError
from ordercrm.core.logging import LoggerMixin
from ordercrm.models.order import Order


@dataclass
class RenumberResult:
    """Outcome of one renumbering pass."""

    total: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: list[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class OrderSequenceRenumberer(LoggerMixin):
    """
    Recomputes the display identifier of every order.

    Passes on one renumberer never interleave. Each pass runs in its own
    transaction and writes every row inside a savepoint, so one bad row is
    reported without losing the others.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        prefix: Optional[str] = None,
        type_field: Optional[str] = None,
        shop_field: Optional[str] = None,
        id_field: Optional[str] = None,
    ) -> None:
        self._session_factory = session_factory
        self.prefix = settings.order_id_prefix if prefix is None else prefix
        self.type_field = type_field or settings.order_type_field
        self.shop_field = shop_field or settings.shop_name_field
        self.id_field = id_field or settings.order_id_field
        self._lock = asyncio.Lock()

    def format_order_id(self, order_type: Any, shop_name: Any, row: int) -> str:
        return f"{self.prefix}{order_type}-{shop_name}-{row}"

    async def renumber(self, session: Optional[AsyncSession] = None) -> RenumberResult:
        """
        Recompute ``order_id`` for all orders.

        Args:
            session: Session to run the pass on. It must not be inside a
                transaction; the pass begins and commits its own. Without
                it a session is opened from the configured factory.

        Returns:
            Counts of updated, unchanged and skipped orders plus the ids of
            orders that could not be written
        """
        async with self._lock:
            if session is not None:
                return await self._run(session)

            factory = self._session_factory
            if factory is None:
                from ordercrm.db.session import AsyncSessionLocal

                factory = AsyncSessionLocal
            async with factory() as own_session:
                return await self._run(own_session)

    async def _run(self, session: AsyncSession) -> RenumberResult:
        result = RenumberResult()

        async with session.begin():
            query = (
                select(Order)
                .order_by(Order.created_at, Order.id)
                .execution_options(populate_existing=True)
            )
            orders = (await session.execute(query)).scalars().all()
            result.total = len(orders)

            for row, order in enumerate(orders, start=1):
                data = order.get_all_values()
                order_type = data.get(self.type_field)
                shop_name = data.get(self.shop_field)

                # Keeps its old id but still takes a rank
                if _is_blank(order_type) or _is_blank(shop_name):
                    result.skipped += 1
                    continue

                order_id = self.format_order_id(order_type, shop_name, row)
                if data.get(self.id_field) == order_id:
                    result.unchanged += 1
                    continue

                data[self.id_field] = order_id
                try:
                    async with session.begin_nested():
                        await self._write_data(session, order, data)
                except Exception as e:
                    error = RowUpdateFailedError(order.id, e)
                    self.logger.error(
                        f"{error.message}: {e}",
                        extra={"order_id": order.id, "code": error.code},
                    )
                    result.failed.append(order.id)
                    continue
                result.updated += 1

        self.logger.info(
            "Order ids renumbered",
            extra={
                "total": result.total,
                "updated": result.updated,
                "unchanged": result.unchanged,
                "skipped": result.skipped,
                "failed": len(result.failed),
            },
        )
        return result

    async def _write_data(self, session: AsyncSession, order: Order, data: dict[str, Any]) -> None:
        """Store ``data`` on one order without touching ``updated_at``."""
        encoded = Order.encode_data(data)
        await session.execute(
            update(Order)
            .where(Order.id == order.id)
            .values(data=encoded, updated_at=Order.updated_at)
            .execution_options(synchronize_session=False)
        )
        set_committed_value(order, "data", encoded)


_renumberer: Optional[OrderSequenceRenumberer] = None


def get_renumberer() -> OrderSequenceRenumberer:
    """Shared renumberer, so passes from all services are serialized."""
    global _renumberer
    if _renumberer is None:
        _renumberer = OrderSequenceRenumberer()
    return _renumberer
