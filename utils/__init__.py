"""
Utility functions for The Virtual Armory.

This package contains pure utility functions organized by domain:
- dates: parsing and formatting of stored timestamps
- formatting: money, counts and labels
- pagination: page/sort parameter normalization
"""

from .dates import (
    add_months,
    format_date_long,
    format_date_relative,
    format_date_simple,
    parse_date,
    parse_datetime,
    start_of_month,
    to_iso,
    utcnow,
)
from .formatting import (
    cents_to_input,
    format_cents,
    format_number,
    humanize_tier,
    parse_money_to_cents,
    truncate,
)
from .pagination import ListParams, calculate_growth_rate

__all__ = [
    # dates
    "add_months",
    "format_date_long",
    "format_date_relative",
    "format_date_simple",
    "parse_date",
    "parse_datetime",
    "start_of_month",
    "to_iso",
    "utcnow",
    # formatting
    "cents_to_input",
    "format_cents",
    "format_number",
    "humanize_tier",
    "parse_money_to_cents",
    "truncate",
    # pagination
    "ListParams",
    "calculate_growth_rate",
]
