"""Dashboard statistics service."""

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ordercrm.core.config import settings
from ordercrm.core.logging import LoggerMixin
from ordercrm.db.base import utc_now
from ordercrm.formula.evaluator import DECIMAL_RE
from ordercrm.models.field import FieldDefinition
from ordercrm.models.order import Order
from ordercrm.schemas.stats import CountItem, OrderStats
from ordercrm.services.order import OrderService

UNSHIPPED_STATUSES = frozenset({"", "--", "已处理"})
EXCEPTION_STATUS = "异常件"

MISSING_STATUS = "--"
MISSING_SHOP = "未知店铺"
MISSING_PRODUCT = "未设置"

# Checked in order; the first numeric one is the order's revenue
REVENUE_KEYS = (
    "amount",
    "total_amount",
    "price",
    "order_amount",
    "income",
    "revenue",
    "到账金额",
    "订单金额",
)

DEFAULT_PRODUCT_FIELD = "product"

_PRODUCT_MARKERS = ("产品", "商品")
_COST_MARKERS = ("成本", "cost", "price")
_PERSON_MARKERS = ("下单人", "联系人", "客户", "用户")
_PRODUCT_PRIORITY = ("产品名称", "商品名称", "产品")

_CENT = Decimal("0.01")


def find_product_field(fields: list[FieldDefinition]) -> str:
    """
    Pick the field holding the product name.

    Candidates mention a product in label or name and are neither a cost
    nor a person. Labels with a more specific product wording win.
    """
    candidates = []
    for field in fields:
        label = field.label.lower()
        name = field.name.lower()
        is_product = any(m in label for m in _PRODUCT_MARKERS) or "product" in name
        is_cost = any(m in label for m in _COST_MARKERS)
        is_person = any(m in label for m in _PERSON_MARKERS) or (
            "name" in name and "product" not in name
        )
        if is_product and not is_cost and not is_person:
            candidates.append(field)

    if not candidates:
        return DEFAULT_PRODUCT_FIELD
    for marker in _PRODUCT_PRIORITY:
        for field in candidates:
            if marker in field.label:
                return field.name
    return candidates[0].name


def parse_amount(value: Any) -> Optional[Decimal]:
    """Read a revenue amount; empty, zero and non-numeric values give None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        amount = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
    elif isinstance(value, str) and DECIMAL_RE.fullmatch(value.strip()):
        amount = Decimal(value.strip())
    else:
        return None
    return amount if amount and amount.is_finite() else None


def order_revenue(data: dict[str, Any]) -> Decimal:
    for key in REVENUE_KEYS:
        amount = parse_amount(data.get(key))
        if amount is not None:
            return amount
    return Decimal(0)


def _label(value: Any, missing: str) -> str:
    if value is None:
        return missing
    text = str(value).strip()
    return text or missing


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive timestamps
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _distribution(counter: Counter) -> list[CountItem]:
    ordered = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return [CountItem(name=name, count=count) for name, count in ordered]


class StatsService(LoggerMixin):
    """Computes dashboard statistics, scoped like the dashboard order list."""

    def __init__(self, orders: Optional[OrderService] = None) -> None:
        self.orders = orders or OrderService()

    async def get_order_stats(
        self,
        db: AsyncSession,
        user_id: int,
        now: Optional[datetime] = None,
    ) -> OrderStats:
        """
        Compute order statistics for a user's dashboard.

        Args:
            db: Database session
            user_id: User ID; non-admins only count orders of granted shops
            now: Reference time for the date buckets, defaults to now (UTC)

        Returns:
            Order statistics; all zero for a non-admin without grants
        """
        orders = await self.orders.list_dashboard_orders(db, user_id)
        if not orders:
            return OrderStats()

        fields = list((await db.execute(select(FieldDefinition))).scalars().all())
        product_field = find_product_field(fields)

        today = _as_utc(now or utc_now()).date()
        yesterday = today - timedelta(days=1)
        week_start = today - timedelta(days=7)
        month_start = today.replace(day=1)

        stats = OrderStats(total=len(orders))
        statuses: Counter = Counter()
        shops: Counter = Counter()
        products: Counter = Counter()
        total_revenue = Decimal(0)
        month_revenue = Decimal(0)

        for order in orders:
            data = order.get_all_values()
            created = _as_utc(order.created_at).date()
            self._count_dates(stats, created, today, yesterday, week_start, month_start)

            status = data.get(settings.order_status_field)
            if status is None or (isinstance(status, str) and status.strip() in UNSHIPPED_STATUSES):
                stats.unshipped += 1
            if status == EXCEPTION_STATUS:
                stats.exception += 1

            statuses[_label(status, MISSING_STATUS)] += 1
            shops[_label(data.get(settings.shop_name_field), MISSING_SHOP)] += 1
            products[_label(data.get(product_field), MISSING_PRODUCT)] += 1

            revenue = order_revenue(data)
            total_revenue += revenue
            if created >= month_start:
                month_revenue += revenue

        stats.status_distribution = _distribution(statuses)
        stats.shop_distribution = _distribution(shops)
        stats.product_distribution = _distribution(products)
        stats.total_revenue = total_revenue.quantize(_CENT)
        stats.month_revenue = month_revenue.quantize(_CENT)
        stats.average_order_value = (total_revenue / stats.total).quantize(_CENT)
        return stats

    @staticmethod
    def _count_dates(
        stats: OrderStats,
        created: date,
        today: date,
        yesterday: date,
        week_start: date,
        month_start: date,
    ) -> None:
        if created == today:
            stats.today += 1
        elif created == yesterday:
            stats.yesterday += 1
        if created >= week_start:
            stats.last_7_days += 1
        if created >= month_start:
            stats.this_month += 1
