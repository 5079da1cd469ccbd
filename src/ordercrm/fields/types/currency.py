"""Currency field type handler."""

from typing import Any

from ordercrm.core.config import settings
from ordercrm.fields.types.number import NumberFieldHandler
from ordercrm.formula.evaluator import to_decimal

# Data key suffix holding the currency symbol chosen for a currency field
CURRENCY_SUFFIX = "_currency"


class CurrencyFieldHandler(NumberFieldHandler):
    """
    Handler for currency field type.

    Stores the amount under the field name. The symbol lives next to it
    in order data under ``<field>_currency``.
    """

    field_type = "currency"

    # Symbols offered by the order form
    CURRENCY_SYMBOLS = {
        "CNY": "¥",
        "USD": "$",
        "EUR": "€",
        "GBP": "£",
        "JPY": "¥",
        "INR": "₹",
        "AUD": "A$",
        "CAD": "CA$",
    }

    @classmethod
    def symbol_key(cls, field_name: str) -> str:
        return f"{field_name}{CURRENCY_SUFFIX}"

    @classmethod
    def format_display(
        cls,
        value: Any,
        options: list[str] | None = None,
        symbol: str | None = None,
    ) -> str:
        """
        Format currency value for display.

        Returns:
            Formatted string like "$1,234.56" or "-¥12.00"
        """
        if value is None or value == "":
            return ""

        amount = to_decimal(value)
        symbol = symbol or settings.default_currency_symbol
        negative_prefix = "-" if amount < 0 else ""
        return f"{negative_prefix}{symbol}{abs(amount):,.2f}"
