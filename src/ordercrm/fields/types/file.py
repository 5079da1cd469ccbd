"""File attachment field type handler."""

from typing import Any

from ordercrm.fields.base import BaseFieldTypeHandler


class FileFieldHandler(BaseFieldTypeHandler):
    """
    Handler for file fields.

    Values are lists of attachment descriptors written by the upload layer:
    ``{"filename": ..., "original_name": ..., "size": ...}``.
    """

    field_type = "file"

    REQUIRED_KEYS = ("filename",)

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, dict):
            return [value]
        return list(value)

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        if value is None or value == "":
            return []
        if isinstance(value, dict):
            return [value]
        return list(value)

    @classmethod
    def validate(cls, value: Any, options: list[str] | None = None) -> bool:
        if value is None or value == "":
            return True
        items = [value] if isinstance(value, dict) else value
        if not isinstance(items, list):
            raise ValueError(f"File field requires a list of attachments, got {type(value).__name__}")
        for item in items:
            if not isinstance(item, dict) or any(key not in item for key in cls.REQUIRED_KEYS):
                raise ValueError("Each attachment must be an object with a 'filename'")
        return True

    @classmethod
    def default(cls) -> Any:
        return []

    @classmethod
    def format_display(cls, value: Any, options: list[str] | None = None) -> str:
        names = [
            str(item.get("original_name") or item.get("filename"))
            for item in cls.deserialize(value)
            if isinstance(item, dict)
        ]
        return ", ".join(names)
