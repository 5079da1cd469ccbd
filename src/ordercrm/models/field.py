"""
Field definition model - describes one custom order attribute.

Field definitions form the catalog that drives the order form, the
formula evaluator and exports.
"""

import json
from enum import Enum

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ordercrm.db.base import BaseModel


class FieldType(str, Enum):
    """Available field types."""

    TEXT = "text"
    NUMBER = "number"
    CURRENCY = "currency"
    SELECT = "select"
    MULTISELECT = "multiselect"
    DATE = "date"
    RICHTEXT = "richtext"
    FILE = "file"
    FORMULA = "formula"


# Types a formula may reference
NUMERIC_FIELD_TYPES = frozenset({FieldType.NUMBER.value, FieldType.CURRENCY.value})


class FieldDefinition(BaseModel):
    """
    Field definition model.

    ``name`` is the key used inside ``Order.data`` and never changes once
    created, so historical order data keeps pointing at it.
    """

    __tablename__: str = "field_definitions"  # type: ignore[assignment]

    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
    )
    label: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    field_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    # JSON list stored as text:
    # - select / multiselect: choices
    # - formula: [expression]
    options: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    is_required: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    is_hidden: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    created_by_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_field_definitions_sort", "sort_order"),
        Index("ix_field_definitions_type", "field_type"),
    )

    def __repr__(self) -> str:
        return f"<FieldDefinition {self.name} ({self.field_type})>"

    @property
    def is_numeric(self) -> bool:
        """Whether formulas may reference this field."""
        return self.field_type in NUMERIC_FIELD_TYPES

    @property
    def is_computed(self) -> bool:
        return self.field_type == FieldType.FORMULA.value

    def get_options(self) -> list[str]:
        """Decoded option list; empty when unset or unreadable."""
        if not self.options:
            return []
        try:
            options = json.loads(self.options)
        except (json.JSONDecodeError, TypeError):
            return []
        return [str(o) for o in options] if isinstance(options, list) else []

    def set_options(self, options: list[str] | None) -> None:
        self.options = json.dumps(options, ensure_ascii=False) if options else None

    @property
    def formula(self) -> str:
        """Formula source for formula fields, empty string otherwise."""
        if not self.is_computed:
            return ""
        options = self.get_options()
        return options[0] if options else ""
