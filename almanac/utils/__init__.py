"""
Almanac Utilities Package

Shared helpers for dates and display formatting.
"""

from almanac.utils.dates import days_between, parse_date, today
from almanac.utils.formatting import format_amount, format_date, month_name

__all__ = [
    "days_between",
    "format_amount",
    "format_date",
    "month_name",
    "parse_date",
    "today",
]
