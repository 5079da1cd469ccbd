"""Date field type handler."""

from datetime import date, datetime
from typing import Any

from ordercrm.fields.base import BaseFieldTypeHandler


class DateFieldHandler(BaseFieldTypeHandler):
    """
    Handler for date fields.

    Dates are stored as ISO strings (``YYYY-MM-DD``); a full ISO datetime
    is accepted and kept.
    """

    field_type = "date"

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None or value == "":
            return value
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return str(value)

    @classmethod
    def deserialize(cls, value: Any) -> date | None:
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        return cls._parse(str(value)).date()

    @classmethod
    def validate(cls, value: Any, options: list[str] | None = None) -> bool:
        if value is None or value == "" or isinstance(value, (date, datetime)):
            return True
        if not isinstance(value, str):
            raise ValueError(f"Date field requires an ISO date string, got {type(value).__name__}")
        try:
            cls._parse(value)
        except ValueError:
            raise ValueError(f"Invalid date: {value}")
        return True

    @classmethod
    def default(cls) -> Any:
        return None

    @classmethod
    def format_display(cls, value: Any, options: list[str] | None = None) -> str:
        try:
            parsed = cls.deserialize(value)
        except ValueError:
            return str(value)
        return parsed.isoformat() if parsed else ""

    @staticmethod
    def _parse(value: str) -> datetime:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
