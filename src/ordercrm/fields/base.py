"""Base class for field type handlers."""

from abc import ABC, abstractmethod
from typing import Any


class BaseFieldTypeHandler(ABC):
    """
    Base class for field type handlers.

    Each field type (text, number, select, etc.) implements this class to
    provide serialization, validation and display formatting.

    ``options`` is the field definition's option list: the choices of a
    select field, or ``[expression]`` for a formula field.
    """

    field_type: str

    @classmethod
    @abstractmethod
    def serialize(cls, value: Any) -> Any:
        """
        Convert Python value to the JSON form stored in order data.

        Args:
            value: Python value to serialize

        Returns:
            JSON-serializable value
        """

    @classmethod
    @abstractmethod
    def deserialize(cls, value: Any) -> Any:
        """
        Convert stored value to Python format.

        Args:
            value: Stored value

        Returns:
            Python value
        """

    @classmethod
    @abstractmethod
    def validate(cls, value: Any, options: list[str] | None = None) -> bool:
        """
        Validate value against field type requirements.

        Args:
            value: Value to validate
            options: Field option list

        Returns:
            True if valid

        Raises:
            ValueError: If validation fails
        """

    @classmethod
    @abstractmethod
    def default(cls) -> Any:
        """Get default value for field type."""

    @classmethod
    def is_empty(cls, value: Any) -> bool:
        """Whether ``value`` counts as missing for required-field checks."""
        if value is None:
            return True
        if isinstance(value, str):
            return value == ""
        if isinstance(value, (list, tuple, set, dict)):
            return len(value) == 0
        return False

    @classmethod
    def format_display(cls, value: Any, options: list[str] | None = None) -> str:
        """Format value for display and export."""
        if value is None:
            return ""
        return str(value)

    @classmethod
    def is_computed(cls) -> bool:
        return False

    @classmethod
    def is_read_only(cls) -> bool:
        return False
