"""Number field type handler."""

from typing import Any

from ordercrm.fields.base import BaseFieldTypeHandler
from ordercrm.formula.evaluator import DECIMAL_RE, to_decimal


class NumberFieldHandler(BaseFieldTypeHandler):
    """
    Handler for number field type.

    Empty input is kept as an empty value; formulas read it as zero.
    """

    field_type = "number"

    @classmethod
    def serialize(cls, value: Any) -> Any:
        """Convert Python value to database-storable format."""
        if value is None or value == "":
            return value
        if isinstance(value, bool):
            raise ValueError(f"Cannot convert {value} to number")
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, str) and DECIMAL_RE.fullmatch(value.strip()):
            number = float(value)
            return int(number) if number.is_integer() and "." not in value else number
        raise ValueError(f"Cannot convert {value} to number")

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        """Convert database value to Python format."""
        if value is None or value == "":
            return None
        return to_decimal(value)

    @classmethod
    def validate(cls, value: Any, options: list[str] | None = None) -> bool:
        """
        Validate number field value.

        Raises:
            ValueError: If the value is neither empty nor numeric
        """
        if value is None or value == "":
            return True
        if isinstance(value, bool):
            raise ValueError(f"{cls.field_type.capitalize()} field requires numeric value, got {value}")
        if isinstance(value, (int, float)):
            return True
        if isinstance(value, str) and DECIMAL_RE.fullmatch(value.strip()):
            return True
        raise ValueError(f"{cls.field_type.capitalize()} field requires numeric value, got {value}")

    @classmethod
    def default(cls) -> Any:
        """Get default value for number field."""
        return None

    @classmethod
    def format_display(cls, value: Any, options: list[str] | None = None) -> str:
        if value is None or value == "":
            return ""
        number = to_decimal(value)
        if number == number.to_integral_value():
            return str(number.quantize(1))
        return str(number.normalize())
