"""Text field type handlers."""

from typing import Any

from ordercrm.fields.base import BaseFieldTypeHandler


class TextFieldHandler(BaseFieldTypeHandler):
    """Handler for single line text fields."""

    field_type = "text"

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None:
            return None
        return str(value)

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        if value is None:
            return None
        return str(value)

    @classmethod
    def validate(cls, value: Any, options: list[str] | None = None) -> bool:
        if value is None:
            return True
        if isinstance(value, (dict, list)):
            raise ValueError(f"Text field requires a string, got {type(value).__name__}")
        return True

    @classmethod
    def default(cls) -> Any:
        return ""


class RichTextFieldHandler(TextFieldHandler):
    """Handler for long, formatted text. Stored as-is."""

    field_type = "richtext"
