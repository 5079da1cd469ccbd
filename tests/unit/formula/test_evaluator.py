"""Unit tests for FormulaEvaluator."""

from decimal import Decimal

import pytest

from ordercrm.core.exceptions import (
    FormulaError,
    InvalidResultError,
    MisplacedOperatorError,
    UnbalancedParenthesesError,
    UnresolvedReferenceError,
)
from ordercrm.formula import (
    FormulaEvaluator,
    evaluate_formula,
    get_referenced_fields,
    preview_formula,
    sample_values,
    to_decimal,
    validate_formula,
)
from ordercrm.models.field import FieldDefinition, FieldType


def make_field(name: str, field_type: FieldType) -> FieldDefinition:
    return FieldDefinition(name=name, label=name, field_type=field_type.value)


CATALOG = [
    make_field("price", FieldType.CURRENCY),
    make_field("quantity", FieldType.NUMBER),
    make_field("cost", FieldType.NUMBER),
    make_field("note", FieldType.TEXT),
]


class TestEvaluate:
    """Tests for evaluate_formula."""

    def test_empty_formula_is_zero(self):
        assert evaluate_formula("", {}) == Decimal("0.00")

    def test_whitespace_formula_is_zero(self):
        assert evaluate_formula("   ", {"a": 1}) == Decimal("0.00")

    def test_numeric_strings_are_numbers(self):
        assert evaluate_formula("a + b", {"a": 3, "b": "4"}) == Decimal("7.00")

    def test_blank_form_reads_zero(self):
        """Without values every name is accepted and reads zero."""
        assert evaluate_formula("a + b", {}) == Decimal("0.00")

    def test_unbalanced_parentheses(self):
        with pytest.raises(UnbalancedParenthesesError) as exc_info:
            evaluate_formula("a * (b + c", {})
        assert exc_info.value.code == "UNBALANCED_PARENTHESES"

    def test_adjacent_operators(self):
        with pytest.raises(MisplacedOperatorError):
            evaluate_formula("a + + b", {})

    def test_division_by_zero(self):
        with pytest.raises(InvalidResultError) as exc_info:
            evaluate_formula("a / b", {"a": 5, "b": 0})
        assert exc_info.value.code == "INVALID_RESULT"

    def test_zero_divided_by_zero(self):
        with pytest.raises(InvalidResultError):
            evaluate_formula("a / b", {"a": 0, "b": 0})

    def test_whole_identifier_matching(self):
        """qty never resolves against quantity."""
        with pytest.raises(UnresolvedReferenceError) as exc_info:
            evaluate_formula("price * qty", {"price": 10, "quantity": 5})
        assert exc_info.value.details["names"] == ["qty"]

    def test_idempotent(self):
        values = {"price": "19.99", "quantity": 3}
        first = evaluate_formula("price * quantity", values)
        second = evaluate_formula("price * quantity", values)
        assert first == second == Decimal("59.97")

    def test_precedence(self):
        assert evaluate_formula("2 + 3 * 4", {}) == Decimal("14.00")
        assert evaluate_formula("(2 + 3) * 4", {}) == Decimal("20.00")

    def test_left_associativity(self):
        assert evaluate_formula("10 - 4 - 3", {}) == Decimal("3.00")
        assert evaluate_formula("8 / 4 / 2", {}) == Decimal("1.00")

    def test_rounds_half_up(self):
        assert evaluate_formula("a / 8", {"a": 1}) == Decimal("0.13")

    def test_result_has_two_places(self):
        assert evaluate_formula("a", {"a": 5}).as_tuple().exponent == -2

    def test_large_results_keep_two_places(self):
        result = evaluate_formula("a * b", {"a": 10**13, "b": 10**13})
        assert result == Decimal("100000000000000000000000000.00")
        assert result.as_tuple().exponent == -2

    def test_large_results_from_exponent_strings(self):
        result = evaluate_formula("a * b", {"a": "1e20", "b": "1e10"})
        assert result == Decimal(10) ** 30
        assert str(result) == "1" + "0" * 30 + ".00"

    def test_negative_values_in_data(self):
        assert evaluate_formula("a + b", {"a": -5, "b": 2}) == Decimal("-3.00")

    def test_non_numeric_values_read_zero(self):
        values = {"a": "abc", "b": 2, "c": None, "d": "", "e": True}
        assert evaluate_formula("a + b + c + d + e", values) == Decimal("2.00")

    def test_padded_numeric_string(self):
        assert evaluate_formula("a * 2", {"a": " 12.5 "}) == Decimal("25.00")

    def test_all_errors_are_formula_errors(self):
        for formula, values in [
            ("a +", {}),
            ("(a", {}),
            ("a / 0", {}),
            ("missing", {"a": 1}),
            ("a $ b", {}),
        ]:
            with pytest.raises(FormulaError):
                evaluate_formula(formula, values)


class TestCatalog:
    """Tests for evaluation against a field catalog."""

    def test_only_numeric_fields_resolve(self):
        with pytest.raises(UnresolvedReferenceError) as exc_info:
            evaluate_formula("price + note", {"price": 1, "note": "x"}, CATALOG)
        assert exc_info.value.details["names"] == ["note"]

    def test_missing_values_read_zero(self):
        assert evaluate_formula("price * quantity + cost", {"price": 2}, CATALOG) == Decimal(
            "0.00"
        )

    def test_catalog_with_values(self):
        values = {"price": "10.50", "quantity": 2, "cost": 4}
        result = evaluate_formula("(price - cost) * quantity", values, CATALOG)
        assert result == Decimal("13.00")

    def test_preview_uses_sample_values(self):
        """Currency fields read 100 and number fields 10."""
        assert preview_formula("price * quantity", CATALOG) == Decimal("1000.00")

    def test_preview_rejects_text_field(self):
        with pytest.raises(UnresolvedReferenceError):
            preview_formula("price + note", CATALOG)

    def test_sample_values(self):
        assert sample_values(CATALOG) == {"price": 100, "quantity": 10, "cost": 10}


class TestHelpers:
    """Tests for module helpers."""

    def test_to_decimal(self):
        assert to_decimal(None) == 0
        assert to_decimal(True) == 0
        assert to_decimal(3) == Decimal(3)
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal("1e3") == Decimal(1000)
        assert to_decimal("12abc") == 0
        assert to_decimal([1]) == 0

    def test_validate_formula_does_not_evaluate(self):
        """Division by a possibly-zero field is still a valid formula."""
        assert validate_formula("price / cost", CATALOG) == (True, None)

    def test_validate_formula_unknown_reference(self):
        valid, error = validate_formula("price / discount", CATALOG)
        assert valid is False
        assert "discount" in error

    def test_validate_formula_empty(self):
        valid, _ = validate_formula("")
        assert valid is False

    def test_get_referenced_fields(self):
        assert get_referenced_fields("price * quantity - price") == ["price", "quantity"]

    def test_custom_precision(self):
        evaluator = FormulaEvaluator(precision=3)
        assert evaluator.evaluate("a / 8", {"a": 1}) == Decimal("0.125")
