"""Display formatting for amounts and dates."""

from datetime import date
from decimal import Decimal
from typing import Optional

from babel.dates import format_date as babel_format_date
from babel.numbers import format_currency

DEFAULT_CURRENCY = "BRL"
DEFAULT_LOCALE = "pt_BR"


def format_amount(amount: Optional[Decimal], currency: str = DEFAULT_CURRENCY, locale: str = DEFAULT_LOCALE) -> str:
    """Format a monetary amount, e.g. ``R$ 1.234,56``."""
    if amount is None:
        amount = Decimal("0")
    return format_currency(amount, currency, locale=locale)


def format_date(value: Optional[date], locale: str = DEFAULT_LOCALE) -> str:
    """Format a date as ``dd/MM/yyyy``."""
    if value is None:
        return ""
    return babel_format_date(value, "dd/MM/yyyy", locale=locale)


def month_name(month: int, locale: str = DEFAULT_LOCALE) -> str:
    """Full month name for 1-12 (``janeiro`` in pt_BR)."""
    return babel_format_date(date(2000, month, 1), "LLLL", locale=locale)
