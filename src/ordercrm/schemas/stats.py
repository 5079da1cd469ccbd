"""Dashboard statistics schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field


class CountItem(BaseModel):
    """One bucket of a distribution."""

    name: str
    count: int


class OrderStats(BaseModel):
    """Order statistics for the dashboard."""

    total: int = 0
    today: int = 0
    yesterday: int = 0
    last_7_days: int = 0
    this_month: int = 0
    unshipped: int = 0
    exception: int = 0

    status_distribution: list[CountItem] = Field(default_factory=list)
    shop_distribution: list[CountItem] = Field(default_factory=list)
    product_distribution: list[CountItem] = Field(default_factory=list)

    total_revenue: Decimal = Decimal("0.00")
    month_revenue: Decimal = Decimal("0.00")
    average_order_value: Decimal = Decimal("0.00")
