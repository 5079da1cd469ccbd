"""Business logic services for ordercrm."""

from ordercrm.services.export import ExportService
from ordercrm.services.field import FieldService
from ordercrm.services.order import OrderService
from ordercrm.services.permission import PermissionService
from ordercrm.services.sequence import OrderSequenceRenumberer, RenumberResult, get_renumberer
from ordercrm.services.stats import StatsService
from ordercrm.services.user import UserService

__all__ = [
    "ExportService",
    "FieldService",
    "OrderSequenceRenumberer",
    "OrderService",
    "PermissionService",
    "RenumberResult",
    "StatsService",
    "UserService",
    "get_renumberer",
]
