"""Order schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field


class OrderCreate(BaseModel):
    """Schema for creating an order."""

    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Field values as {field_name: value}",
    )


class OrderUpdate(BaseModel):
    """Schema for updating an order. ``data`` replaces the stored values."""

    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Field values as {field_name: value}",
    )


class OrderResponse(BaseModel):
    """Schema for order response."""

    id: int
    data: dict[str, Any]
    computed: dict[str, Optional[Decimal]] = Field(
        default_factory=dict, description="Formula field values"
    )
    created_by_id: Optional[int]
    updated_by_id: Optional[int]
    created_at: datetime
    updated_at: datetime


class OrderUpdateResponse(OrderResponse):
    """Order response that reports whether order ids were regenerated."""

    regenerated: bool = False
