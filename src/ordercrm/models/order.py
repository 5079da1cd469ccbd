"""
Order model - one row of user-entered order data.

Field values are stored as JSON so the field catalog can change
without migrations.
"""

import json
from typing import Any

from sqlalchemy import ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from ordercrm.db.base import BaseModel


class Order(BaseModel):
    """
    Order model.

    ``data`` maps field names to values. Keys are expected, but not
    enforced, to match a current field definition.
    """

    __tablename__: str = "orders"  # type: ignore[assignment]

    data: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="{}",
    )

    created_by_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    updated_by_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_orders_created_order", "created_at", "id"),
        Index("ix_orders_created_by", "created_by_id"),
    )

    def __repr__(self) -> str:
        return f"<Order {self.id}>"

    def get_field_value(self, field_name: str) -> Any:
        """
        Get value for a specific field.

        Args:
            field_name: Name of the field

        Returns:
            Field value or None if not set
        """
        return self.get_all_values().get(field_name)

    def set_field_value(self, field_name: str, value: Any) -> None:
        """
        Set value for a specific field, keeping all other keys.

        Args:
            field_name: Name of the field
            value: Value to set
        """
        data = self.get_all_values()
        data[field_name] = value
        self.set_all_values(data)

    def get_all_values(self) -> dict[str, Any]:
        """
        Get all field values.

        Returns:
            Dictionary of field name -> value
        """
        return self.decode_data(self.data)

    def set_all_values(self, data: dict[str, Any]) -> None:
        self.data = self.encode_data(data)

    @staticmethod
    def encode_data(data: dict[str, Any]) -> str:
        """Encode field values the way they are stored in ``data``."""
        return json.dumps(data, ensure_ascii=False, default=str)

    @staticmethod
    def decode_data(raw: str | None) -> dict[str, Any]:
        """Decode stored field values; unreadable data reads as empty."""
        try:
            data = json.loads(raw) if raw else {}
        except (json.JSONDecodeError, TypeError):
            return {}
        return data if isinstance(data, dict) else {}
