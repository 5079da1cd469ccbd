"""Select field type handlers."""

from typing import Any

from ordercrm.fields.base import BaseFieldTypeHandler


class SelectFieldHandler(BaseFieldTypeHandler):
    """
    Handler for single select fields.

    The option list holds the allowed choices. A field without options
    accepts any value.
    """

    field_type = "select"

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None:
            return None
        return str(value)

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        return value

    @classmethod
    def validate(cls, value: Any, options: list[str] | None = None) -> bool:
        if value is None or value == "":
            return True
        if options and str(value) not in options:
            raise ValueError(f"Invalid option '{value}'. Must be one of: {', '.join(options)}")
        return True

    @classmethod
    def default(cls) -> Any:
        return None


class MultiSelectFieldHandler(SelectFieldHandler):
    """Handler for multi select fields; values are lists of choices."""

    field_type = "multiselect"

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value else []
        if isinstance(value, (list, tuple, set)):
            return [str(v) for v in value]
        raise ValueError(f"Cannot convert {type(value).__name__} to multi select value")

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return value
        return [value]

    @classmethod
    def validate(cls, value: Any, options: list[str] | None = None) -> bool:
        if value is None:
            return True
        if not isinstance(value, (list, tuple, set)):
            raise ValueError(f"Multi select field requires list value, got {type(value).__name__}")
        if options:
            invalid = [str(v) for v in value if str(v) not in options]
            if invalid:
                raise ValueError(f"Invalid options: {', '.join(invalid)}")
        return True

    @classmethod
    def default(cls) -> Any:
        return []

    @classmethod
    def format_display(cls, value: Any, options: list[str] | None = None) -> str:
        return ", ".join(str(v) for v in cls.deserialize(value))
