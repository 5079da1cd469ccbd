"""Pydantic schemas for ordercrm services."""

from ordercrm.schemas.field import FieldCreate, FieldResponse, FieldSortItem, FieldUpdate
from ordercrm.schemas.order import OrderCreate, OrderResponse, OrderUpdate, OrderUpdateResponse
from ordercrm.schemas.stats import CountItem, OrderStats
from ordercrm.schemas.user import UserCreate, UserResponse, UserUpdate

__all__ = [
    "CountItem",
    "FieldCreate",
    "FieldResponse",
    "FieldSortItem",
    "FieldUpdate",
    "OrderCreate",
    "OrderResponse",
    "OrderStats",
    "OrderUpdate",
    "OrderUpdateResponse",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
]
