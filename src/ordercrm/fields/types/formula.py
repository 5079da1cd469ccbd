"""Formula field type handler.

Formula fields compute their value from other number and currency fields
of the same order. Results are never stored in order data.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from ordercrm.core.exceptions import FormulaError
from ordercrm.fields.base import BaseFieldTypeHandler
from ordercrm.formula import evaluate_formula, validate_formula
from ordercrm.formula.evaluator import FieldLike


class FormulaFieldHandler(BaseFieldTypeHandler):
    """
    Handler for formula fields.

    Options:
        A single element holding the expression, e.g. ``["price * quantity"]``.
    """

    field_type = "formula"

    @classmethod
    def serialize(cls, value: Any) -> Any:
        # Never persisted
        return None

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        return value

    @classmethod
    def validate(cls, value: Any, options: list[str] | None = None) -> bool:
        """
        Validate formula field configuration.

        Args:
            value: Ignored, formula values are computed
            options: ``[expression]``

        Raises:
            ValueError: If the expression is missing or malformed
        """
        formula = cls.get_formula(options)
        if not formula:
            raise ValueError("Formula field must hold an expression")

        valid, error = validate_formula(formula)
        if not valid:
            raise ValueError(f"Invalid formula: {error}")
        return True

    @classmethod
    def default(cls) -> Any:
        return None

    @classmethod
    def get_formula(cls, options: list[str] | None) -> str:
        if not options:
            return ""
        return str(options[0] or "").strip()

    @classmethod
    def compute(
        cls,
        formula: str,
        values: Mapping[str, Any],
        fields: Iterable[FieldLike] | None = None,
    ) -> Decimal | None:
        """
        Compute a formula value for one order.

        Returns:
            The result, or None if the formula cannot be evaluated
        """
        try:
            return evaluate_formula(formula, values, fields)
        except FormulaError:
            return None

    @classmethod
    def format_display(cls, value: Any, options: list[str] | None = None) -> str:
        if value is None:
            return ""
        return f"{Decimal(value):.2f}"

    @classmethod
    def is_computed(cls) -> bool:
        return True

    @classmethod
    def is_read_only(cls) -> bool:
        return True
