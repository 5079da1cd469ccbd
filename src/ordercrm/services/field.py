"""Field catalog service for business logic."""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ordercrm.core.exceptions import (
    DuplicateError,
    FieldNotFoundError,
    InvalidFieldTypeError,
    ValidationError,
)
from ordercrm.core.logging import LoggerMixin
from ordercrm.fields import FormulaFieldHandler, get_field_handler
from ordercrm.formula import preview_formula
from ordercrm.models.field import NUMERIC_FIELD_TYPES, FieldDefinition, FieldType
from ordercrm.schemas.field import FieldCreate, FieldSortItem, FieldUpdate
from ordercrm.services.permission import PermissionService

# Types whose option list holds choices
_CHOICE_TYPES = frozenset({FieldType.SELECT.value, FieldType.MULTISELECT.value})


class FieldService(LoggerMixin):
    """Service for field definition operations."""

    def __init__(self, permissions: Optional[PermissionService] = None) -> None:
        self.permissions = permissions or PermissionService()

    async def create_field(
        self,
        db: AsyncSession,
        user_id: int,
        field_data: FieldCreate,
    ) -> FieldDefinition:
        """Create a new field definition.

        Args:
            db: Database session
            user_id: User ID creating the field
            field_data: Field creation data

        Returns:
            Created field

        Raises:
            PermissionDeniedError: If user is not an admin
            DuplicateError: If a field with the same name exists
            FormulaError: If a formula field does not evaluate cleanly
                against sample values

        """
        await self.permissions.require_admin(db, user_id)

        field_type = self._check_type(field_data.field_type)

        existing = await db.execute(
            select(FieldDefinition.id).where(FieldDefinition.name == field_data.name)
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateError("Field", "name", field_data.name)

        options = await self._check_options(db, field_type, field_data.options)

        sort_order = field_data.sort_order
        if sort_order is None:
            max_sort = await db.execute(select(func.max(FieldDefinition.sort_order)))
            sort_order = (max_sort.scalar() or 0) + 1

        field = FieldDefinition(
            name=field_data.name,
            label=field_data.label,
            field_type=field_type,
            is_required=field_data.is_required,
            is_hidden=field_data.is_hidden,
            sort_order=sort_order,
            created_by_id=user_id,
        )
        field.set_options(options)
        db.add(field)
        await db.flush()
        await db.refresh(field)

        self.logger.info(
            "Field created",
            extra={"field": field.name, "field_type": field_type, "user_id": user_id},
        )
        return field

    async def get_field(self, db: AsyncSession, field_id: int) -> FieldDefinition:
        """Get a field definition by ID.

        Raises:
            FieldNotFoundError: If field not found

        """
        field = await db.get(FieldDefinition, field_id)
        if not field:
            raise FieldNotFoundError(field_id)
        return field

    async def list_fields(
        self,
        db: AsyncSession,
        include_hidden: bool = True,
    ) -> list[FieldDefinition]:
        """List field definitions in display order."""
        query = select(FieldDefinition)
        if not include_hidden:
            query = query.where(FieldDefinition.is_hidden.is_(False))
        query = query.order_by(FieldDefinition.sort_order, FieldDefinition.id)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_numeric_fields(self, db: AsyncSession) -> list[FieldDefinition]:
        """Fields a formula may reference."""
        result = await db.execute(
            select(FieldDefinition)
            .where(FieldDefinition.field_type.in_(NUMERIC_FIELD_TYPES))
            .order_by(FieldDefinition.sort_order, FieldDefinition.id)
        )
        return list(result.scalars().all())

    async def update_field(
        self,
        db: AsyncSession,
        user_id: int,
        field_id: int,
        field_data: FieldUpdate,
    ) -> FieldDefinition:
        """Update a field definition.

        Args:
            db: Database session
            user_id: User ID making request
            field_id: Field ID
            field_data: Field update data

        Returns:
            Updated field

        Raises:
            PermissionDeniedError: If user is not an admin
            FieldNotFoundError: If field not found
            ValidationError: If the request tries to rename the field

        """
        await self.permissions.require_admin(db, user_id)
        field = await self.get_field(db, field_id)

        if field_data.name is not None and field_data.name != field.name:
            raise ValidationError(
                "Field name cannot be changed",
                errors=[{"field": "name", "message": "Field name is immutable"}],
            )

        field_type = field.field_type
        if field_data.field_type is not None:
            field_type = self._check_type(field_data.field_type)

        if field_data.options is not None or field_type != field.field_type:
            options = field_data.options if field_data.options is not None else field.get_options()
            field.set_options(await self._check_options(db, field_type, options, exclude=field))

        field.field_type = field_type
        if field_data.label is not None:
            field.label = field_data.label
        if field_data.is_required is not None:
            field.is_required = field_data.is_required
        if field_data.sort_order is not None:
            field.sort_order = field_data.sort_order
        if field_data.is_hidden is not None:
            field.is_hidden = field_data.is_hidden

        await db.flush()
        await db.refresh(field)
        return field

    async def delete_field(self, db: AsyncSession, user_id: int, field_id: int) -> None:
        """Delete a field definition.

        Order data stored under the field name is left untouched.

        Raises:
            PermissionDeniedError: If user is not an admin
            FieldNotFoundError: If field not found

        """
        await self.permissions.require_admin(db, user_id)
        field = await self.get_field(db, field_id)
        await db.delete(field)
        await db.flush()

        self.logger.info("Field deleted", extra={"field": field.name, "user_id": user_id})

    async def reorder_fields(
        self,
        db: AsyncSession,
        user_id: int,
        items: list[FieldSortItem],
    ) -> list[FieldDefinition]:
        """Apply a bulk sort order update.

        Raises:
            PermissionDeniedError: If user is not an admin
            FieldNotFoundError: If any id is unknown; nothing is changed

        """
        await self.permissions.require_admin(db, user_id)

        ids = [item.id for item in items]
        result = await db.execute(select(FieldDefinition).where(FieldDefinition.id.in_(ids)))
        fields = {field.id: field for field in result.scalars().all()}

        missing = [field_id for field_id in ids if field_id not in fields]
        if missing:
            raise FieldNotFoundError(missing[0])

        for item in items:
            fields[item.id].sort_order = item.sort_order
        await db.flush()

        return await self.list_fields(db)

    def _check_type(self, field_type: FieldType | str) -> str:
        value = getattr(field_type, "value", field_type)
        if get_field_handler(value) is None:
            raise InvalidFieldTypeError(str(value))
        return value

    async def _check_options(
        self,
        db: AsyncSession,
        field_type: str,
        options: Optional[list[str]],
        exclude: Optional[FieldDefinition] = None,
    ) -> Optional[list[str]]:
        """Normalize the option list for ``field_type``.

        Choice lists are stripped and de-duplicated. A formula must preview
        cleanly against the current numeric fields.
        """
        if field_type in _CHOICE_TYPES:
            cleaned = [o.strip() for o in options or [] if o and o.strip()]
            return list(dict.fromkeys(cleaned)) or None

        if field_type == FieldType.FORMULA.value:
            formula = FormulaFieldHandler.get_formula(options)
            if not formula:
                raise ValidationError(
                    "Formula field must hold an expression",
                    errors=[{"field": "options", "message": "Formula is required"}],
                )
            numeric = [
                f for f in await self.get_numeric_fields(db) if exclude is None or f.id != exclude.id
            ]
            preview_formula(formula, numeric)
            return [formula]

        return None
