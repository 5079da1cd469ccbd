"""Formula evaluator for order formulas.

Resolves field references against order data and evaluates the parsed AST
with Decimal arithmetic.
"""

import re
from collections.abc import Iterable, Mapping
from decimal import (
    ROUND_HALF_UP,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import Any, Protocol

from ordercrm.core.config import settings
from ordercrm.core.exceptions import FormulaError, InvalidResultError, UnresolvedReferenceError
from ordercrm.models.field import NUMERIC_FIELD_TYPES, FieldType
from ordercrm.formula.parser import (
    NAME,
    BinaryOpNode,
    FieldRefNode,
    FormulaParser,
    NumberNode,
    get_parser,
)

ZERO = Decimal(0)

DECIMAL_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

_ARITHMETIC = Context(
    prec=28,
    rounding=ROUND_HALF_UP,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)


class FieldLike(Protocol):
    name: str
    field_type: Any


def _type_of(field: FieldLike) -> str:
    return getattr(field.field_type, "value", field.field_type)


def to_decimal(value: Any) -> Decimal:
    """
    Read a field value as a number.

    Missing, empty and non-numeric values read as zero. Booleans are not
    numbers here.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, str):
        text = value.strip()
        if DECIMAL_RE.fullmatch(text):
            return Decimal(text)
    return ZERO


class FormulaEvaluator:
    """
    Evaluates formulas against a mapping of field values.

    The evaluator holds no per-call state: the same formula and values
    always give the same result.
    """

    def __init__(
        self,
        parser: FormulaParser | None = None,
        precision: int | None = None,
    ) -> None:
        self._parser = parser or get_parser()
        self._precision = settings.formula_precision if precision is None else precision

    def evaluate(
        self,
        formula: str,
        values: Mapping[str, Any],
        fields: Iterable[FieldLike] | None = None,
    ) -> Decimal:
        """
        Evaluate a formula.

        Args:
            formula: Formula source, e.g. ``"price * quantity"``
            values: Field name -> raw value (order data)
            fields: Field catalog. Only number and currency fields may be
                referenced. Without a catalog the keys of ``values`` are
                the allowed names; an empty ``values`` allows any name.

        Returns:
            Result rounded to the configured number of decimal places

        Raises:
            UnresolvedReferenceError: Unknown field or malformed token
            UnbalancedParenthesesError: Parentheses do not match
            MisplacedOperatorError: Operator at an end or next to another
            InvalidResultError: Division by zero or non-finite result
        """
        if not formula or not formula.strip():
            return self._quantize(formula, ZERO)

        ast, names = self._compile(formula, self._reference_set(values, fields))

        resolved = {name: to_decimal(values.get(name)) for name in names}
        try:
            with localcontext(_ARITHMETIC):
                result = self._eval(ast, resolved)
        except (InvalidOperation, DivisionByZero, Overflow) as e:
            raise InvalidResultError(formula) from e

        if not result.is_finite():
            raise InvalidResultError(formula)
        return self._quantize(formula, result)

    def validate(
        self,
        formula: str,
        fields: Iterable[FieldLike] | None = None,
    ) -> tuple[bool, str | None]:
        """
        Check syntax and, given a field catalog, references.

        Nothing is evaluated, so a division that could be zero for some
        orders still validates.

        Returns:
            Tuple of (is_valid, error_message)
        """
        allowed = None if fields is None else self._reference_set({}, fields)
        try:
            self._compile(formula, allowed)
        except FormulaError as e:
            return False, e.message
        return True, None

    def _compile(self, formula: str, allowed: set[str] | None) -> tuple[Any, list[str]]:
        tokens = self._parser.tokenize(formula)
        names = list(dict.fromkeys(t.value for t in tokens if t.type == NAME))

        if allowed is not None:
            unknown = [n for n in names if n not in allowed]
            if unknown:
                raise UnresolvedReferenceError(formula, unknown)

        self._parser.check_structure(formula, tokens)
        return self._parser.build_ast(formula), names

    def preview(self, formula: str, fields: Iterable[FieldLike]) -> Decimal:
        """
        Evaluate a formula against sample values for authoring feedback.

        Number fields read ``formula_sample_number`` and currency fields
        ``formula_sample_currency``.
        """
        fields = list(fields)
        return self.evaluate(formula, sample_values(fields), fields)

    def _reference_set(
        self,
        values: Mapping[str, Any],
        fields: Iterable[FieldLike] | None,
    ) -> set[str] | None:
        if fields is not None:
            return {f.name for f in fields if _type_of(f) in NUMERIC_FIELD_TYPES}
        if not values:
            return None
        return set(values)

    def _eval(self, node: Any, resolved: Mapping[str, Decimal]) -> Decimal:
        """Recursively evaluate an AST node."""
        if isinstance(node, NumberNode):
            return node.value

        if isinstance(node, FieldRefNode):
            return resolved.get(node.field_name, ZERO)

        if isinstance(node, BinaryOpNode):
            left = self._eval(node.left, resolved)
            right = self._eval(node.right, resolved)
            if node.operator == "+":
                return left + right
            if node.operator == "-":
                return left - right
            if node.operator == "*":
                return left * right
            if node.operator == "/":
                return left / right

        raise ValueError(f"Unknown formula node: {node!r}")

    def _quantize(self, formula: str, value: Decimal) -> Decimal:
        exponent = Decimal(1).scaleb(-self._precision)
        # Enough digits for the integer part plus the decimal places
        digits = max(_ARITHMETIC.prec, value.adjusted() + self._precision + 2)
        try:
            with localcontext(_ARITHMETIC) as ctx:
                ctx.prec = digits
                return value.quantize(exponent)
        except InvalidOperation as e:
            raise InvalidResultError(formula) from e


def sample_values(fields: Iterable[FieldLike]) -> dict[str, int]:
    """Synthetic values used to preview a formula while it is authored."""
    samples: dict[str, int] = {}
    for field in fields:
        field_type = _type_of(field)
        if field_type == FieldType.CURRENCY.value:
            samples[field.name] = settings.formula_sample_currency
        elif field_type == FieldType.NUMBER.value:
            samples[field.name] = settings.formula_sample_number
    return samples


_default_evaluator: FormulaEvaluator | None = None


def _get_evaluator() -> FormulaEvaluator:
    global _default_evaluator
    if _default_evaluator is None:
        _default_evaluator = FormulaEvaluator()
    return _default_evaluator


def evaluate_formula(
    formula: str,
    values: Mapping[str, Any],
    fields: Iterable[FieldLike] | None = None,
) -> Decimal:
    """
    Convenience function to evaluate a formula.

    Args:
        formula: Formula source
        values: Field values for the order
        fields: Optional field catalog

    Returns:
        Evaluation result
    """
    return _get_evaluator().evaluate(formula, values, fields)


def preview_formula(formula: str, fields: Iterable[FieldLike]) -> Decimal:
    """Evaluate ``formula`` against preview sample values for ``fields``."""
    return _get_evaluator().preview(formula, fields)


def validate_formula(
    formula: str,
    fields: Iterable[FieldLike] | None = None,
) -> tuple[bool, str | None]:
    """Validate ``formula`` without evaluating it. See ``FormulaEvaluator.validate``."""
    return _get_evaluator().validate(formula, fields)


def get_referenced_fields(formula: str) -> list[str]:
    """Field names referenced by ``formula``, in order of first use."""
    return get_parser().get_field_references(formula)
