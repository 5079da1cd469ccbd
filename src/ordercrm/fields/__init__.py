"""Field type handlers for ordercrm.

Each handler implements serialization, validation and display formatting
for one ``FieldType``.
"""

from ordercrm.fields.base import BaseFieldTypeHandler
from ordercrm.fields.types.currency import CurrencyFieldHandler
from ordercrm.fields.types.date import DateFieldHandler
from ordercrm.fields.types.file import FileFieldHandler
from ordercrm.fields.types.formula import FormulaFieldHandler
from ordercrm.fields.types.number import NumberFieldHandler
from ordercrm.fields.types.select import MultiSelectFieldHandler, SelectFieldHandler
from ordercrm.fields.types.text import RichTextFieldHandler, TextFieldHandler

# Registry of field type handlers
FIELD_HANDLERS: dict[str, type[BaseFieldTypeHandler]] = {
    TextFieldHandler.field_type: TextFieldHandler,
    RichTextFieldHandler.field_type: RichTextFieldHandler,
    NumberFieldHandler.field_type: NumberFieldHandler,
    CurrencyFieldHandler.field_type: CurrencyFieldHandler,
    SelectFieldHandler.field_type: SelectFieldHandler,
    MultiSelectFieldHandler.field_type: MultiSelectFieldHandler,
    DateFieldHandler.field_type: DateFieldHandler,
    FileFieldHandler.field_type: FileFieldHandler,
    FormulaFieldHandler.field_type: FormulaFieldHandler,
}


def get_field_handler(field_type: str) -> type[BaseFieldTypeHandler] | None:
    """
    Get field handler for given field type.

    Args:
        field_type: Field type identifier

    Returns:
        Field handler class or None if not found
    """
    return FIELD_HANDLERS.get(getattr(field_type, "value", field_type))


def list_field_types() -> list[str]:
    """List all registered field types."""
    return list(FIELD_HANDLERS.keys())


__all__ = [
    "BaseFieldTypeHandler",
    "FIELD_HANDLERS",
    "get_field_handler",
    "list_field_types",
    "CurrencyFieldHandler",
    "DateFieldHandler",
    "FileFieldHandler",
    "FormulaFieldHandler",
    "MultiSelectFieldHandler",
    "NumberFieldHandler",
    "RichTextFieldHandler",
    "SelectFieldHandler",
    "TextFieldHandler",
]
