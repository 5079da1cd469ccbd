"""Formula engine for ordercrm.

Formula fields hold an arithmetic expression over number and currency
fields, for example ``(price - cost) * quantity``. Supported:
- Arithmetic operations (+, -, *, /) with standard precedence
- Parentheses
- Field references by field name
- Non-negative numeric literals

Results are computed on read and never stored.
"""

from ordercrm.formula.evaluator import (
    FormulaEvaluator,
    evaluate_formula,
    get_referenced_fields,
    preview_formula,
    sample_values,
    to_decimal,
    validate_formula,
)
from ordercrm.formula.parser import FormulaParser, get_parser, parse_formula

__all__ = [
    "FormulaParser",
    "FormulaEvaluator",
    "evaluate_formula",
    "get_referenced_fields",
    "get_parser",
    "parse_formula",
    "preview_formula",
    "sample_values",
    "to_decimal",
    "validate_formula",
]
