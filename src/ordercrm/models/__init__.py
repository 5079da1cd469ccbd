"""SQLAlchemy models for ordercrm."""

from ordercrm.models.field import NUMERIC_FIELD_TYPES, FieldDefinition, FieldType
from ordercrm.models.order import Order
from ordercrm.models.user import User, UserRole, UserShopPermission, UserStatus

__all__ = [
    "NUMERIC_FIELD_TYPES",
    "FieldDefinition",
    "FieldType",
    "Order",
    "User",
    "UserRole",
    "UserShopPermission",
    "UserStatus",
]
