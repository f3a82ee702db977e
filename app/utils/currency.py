from decimal import Decimal

from app.utils.decimal_utils import to_decimal

CURRENCIES = {
    "USD": ("$", "US Dollar"),
    "EUR": ("€", "Euro"),
    "GBP": ("£", "British Pound"),
    "INR": ("₹", "Indian Rupee"),
    "JPY": ("¥", "Japanese Yen"),
    "CAD": ("C$", "Canadian Dollar"),
    "AUD": ("A$", "Australian Dollar"),
}

DEFAULT_SYMBOL = "$"


def currency_symbol(code: str | None) -> str:
    entry = CURRENCIES.get((code or "").upper())
    return entry[0] if entry else DEFAULT_SYMBOL


def format_currency(amount, code: str | None = "INR") -> str:
    value = to_decimal(amount if amount is not None else Decimal("0"))
    sign = "-" if value < 0 else ""
    return f"{sign}{currency_symbol(code)}{abs(value):,.2f}"
