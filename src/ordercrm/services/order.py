"""Order service for business logic."""

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ordercrm.core.config import settings
from ordercrm.core.exceptions import (
    InvalidFieldValueError,
    OrderNotFoundError,
    PermissionDeniedError,
    RequiredFieldsError,
)
from ordercrm.core.logging import LoggerMixin
from ordercrm.fields import FormulaFieldHandler, get_field_handler
from ordercrm.models.field import FieldDefinition, FieldType
from ordercrm.models.order import Order
from ordercrm.schemas.order import OrderCreate, OrderResponse, OrderUpdate
from ordercrm.services.field import FieldService
from ordercrm.services.permission import PermissionService
from ordercrm.services.sequence import OrderSequenceRenumberer, RenumberResult, get_renumberer


def is_missing(field: FieldDefinition, value: Any) -> bool:
    """Whether ``value`` fails a required check for ``field``."""
    if field.field_type == FieldType.MULTISELECT.value:
        return not isinstance(value, list) or len(value) == 0
    if value is None or value == "":
        return True
    return isinstance(value, list) and len(value) == 0


class OrderService(LoggerMixin):
    """Service for order operations."""

    def __init__(
        self,
        renumberer: Optional[OrderSequenceRenumberer] = None,
        permissions: Optional[PermissionService] = None,
        fields: Optional[FieldService] = None,
    ) -> None:
        self.renumberer = renumberer or get_renumberer()
        self.permissions = permissions or PermissionService()
        self.fields = fields or FieldService(self.permissions)

    async def create_order(
        self,
        db: AsyncSession,
        user_id: int,
        order_data: OrderCreate,
    ) -> Order:
        """Create an order and assign order ids.

        The order is committed before renumbering, so a failed renumbering
        never loses the order.

        Args:
            db: Database session, not inside a transaction on return
            user_id: User ID creating the order
            order_data: Order creation data

        Returns:
            Created order with its order id assigned

        Raises:
            RequiredFieldsError: If required fields are empty
            InvalidFieldValueError: If a value does not fit its field type

        """
        await self.permissions.get_user(db, user_id)
        fields = await self.fields.list_fields(db)
        data = self._prepare_data(order_data.data, fields)

        order = Order(created_by_id=user_id, updated_by_id=user_id)
        order.set_all_values(data)
        db.add(order)
        await db.commit()

        self.logger.info("Order created", extra={"order_id": order.id, "user_id": user_id})
        await self._renumber(db)
        return order

    async def get_order(self, db: AsyncSession, order_id: int) -> Order:
        """Get an order by ID.

        Raises:
            OrderNotFoundError: If order not found

        """
        order = await db.get(Order, order_id)
        if not order:
            raise OrderNotFoundError(order_id)
        return order

    async def update_order(
        self,
        db: AsyncSession,
        user_id: int,
        order_id: int,
        order_data: OrderUpdate,
    ) -> tuple[Order, bool]:
        """Replace an order's data.

        Order ids are regenerated only when the order type or shop name
        changed. Without an order id in the new data the current one is
        kept.

        Returns:
            Tuple of (order, regenerated)

        Raises:
            OrderNotFoundError: If order not found
            RequiredFieldsError: If required fields are empty
            InvalidFieldValueError: If a value does not fit its field type

        """
        await self.permissions.get_user(db, user_id)
        order = await self.get_order(db, order_id)
        fields = await self.fields.list_fields(db)
        data = self._prepare_data(order_data.data, fields)

        current = order.get_all_values()
        regenerate = any(
            current.get(key) != data.get(key)
            for key in (settings.order_type_field, settings.shop_name_field)
        )
        if settings.order_id_field not in data and settings.order_id_field in current:
            data[settings.order_id_field] = current[settings.order_id_field]

        order.set_all_values(data)
        order.updated_by_id = user_id
        await db.commit()

        regenerated = False
        if regenerate:
            regenerated = await self._renumber(db) is not None
        return order, regenerated

    async def delete_order(self, db: AsyncSession, user_id: int, order_id: int) -> None:
        """Delete an order and renumber the rest.

        Raises:
            OrderNotFoundError: If order not found
            PermissionDeniedError: If user is neither admin nor the creator

        """
        user = await self.permissions.get_user(db, user_id)
        order = await self.get_order(db, order_id)

        if not user.is_admin and order.created_by_id != user_id:
            raise PermissionDeniedError("You don't have permission to delete this order")

        await db.delete(order)
        await db.commit()

        self.logger.info("Order deleted", extra={"order_id": order_id, "user_id": user_id})
        await self._renumber(db)

    async def list_orders(self, db: AsyncSession, user_id: int) -> list[Order]:
        """All orders in creation order."""
        await self.permissions.get_user(db, user_id)
        result = await db.execute(select(Order).order_by(Order.created_at, Order.id))
        return list(result.scalars().all())

    async def list_dashboard_orders(self, db: AsyncSession, user_id: int) -> list[Order]:
        """Orders visible on a user's dashboard.

        Admins see every order. Other users see orders of the shops they
        were granted, and nothing without any grant.
        """
        user = await self.permissions.get_user(db, user_id)
        orders = await self.list_orders(db, user_id)
        if user.is_admin:
            return orders

        shops = set(user.shop_names)
        if not shops:
            return []
        return [o for o in orders if o.get_field_value(settings.shop_name_field) in shops]

    async def list_shops(self, db: AsyncSession, user_id: int) -> list[str]:
        """Shops a user can filter by.

        Admins get the distinct shop names found in orders; other users get
        their granted shops.
        """
        user = await self.permissions.get_user(db, user_id)
        if not user.is_admin:
            return user.shop_names

        result = await db.execute(select(Order.data))
        shops = set()
        for raw in result.scalars().all():
            shop = Order.decode_data(raw).get(settings.shop_name_field)
            if isinstance(shop, str) and shop.strip():
                shops.add(shop)
        return sorted(shops)

    def compute_formula_values(
        self,
        order_data: dict[str, Any],
        fields: list[FieldDefinition],
    ) -> dict[str, Optional[Decimal]]:
        """Evaluate every formula field against one order's data.

        Formulas that cannot be evaluated yield None.
        """
        numeric = [f for f in fields if f.is_numeric]
        return {
            f.name: FormulaFieldHandler.compute(f.formula, order_data, numeric)
            for f in fields
            if f.is_computed
        }

    def to_response(self, order: Order, fields: list[FieldDefinition]) -> OrderResponse:
        """Build the response payload for one order, formulas included."""
        data = order.get_all_values()
        return OrderResponse(
            id=order.id,
            data=data,
            computed=self.compute_formula_values(data, fields),
            created_by_id=order.created_by_id,
            updated_by_id=order.updated_by_id,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

    def _prepare_data(
        self,
        data: dict[str, Any],
        fields: list[FieldDefinition],
    ) -> dict[str, Any]:
        """Check required and typed values; drop computed keys.

        Keys without a field definition pass through untouched.
        """
        missing = [
            f.label
            for f in fields
            if f.is_required and not f.is_computed and is_missing(f, data.get(f.name))
        ]
        if missing:
            raise RequiredFieldsError(missing)

        prepared = dict(data)
        for field in fields:
            if field.is_computed:
                prepared.pop(field.name, None)
                continue
            if field.name not in prepared:
                continue

            handler = get_field_handler(field.field_type)
            if handler is None:
                continue
            try:
                handler.validate(prepared[field.name], field.get_options())
                prepared[field.name] = handler.serialize(prepared[field.name])
            except ValueError as e:
                raise InvalidFieldValueError(field.name, field.field_type, prepared[field.name]) from e
        return prepared

    async def _renumber(self, db: AsyncSession) -> Optional[RenumberResult]:
        """Run a renumbering pass; failures are logged, never raised."""
        try:
            result = await self.renumberer.renumber(db)
        except Exception as e:
            self.logger.error(f"Order renumbering failed: {e}", exc_info=True)
            return None

        if result.failed:
            self.logger.warning(
                "Some order ids could not be regenerated",
                extra={"failed": result.failed},
            )
        return result
