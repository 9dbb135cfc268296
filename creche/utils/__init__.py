"""
Utility modules for the creche backend.

This package contains reusable utility functions for date handling,
value formatting, and error handling throughout the application.
"""

from creche.utils.date_utils import (
    parse_date,
    add_months,
    clamp_day,
    week_start,
    month_label,
    format_date_br,
)

from creche.utils.format_utils import (
    only_digits,
    to_cents,
    format_brl,
)

from creche.utils.error_utils import (
    CrecheError,
    ValidationError,
    CouponError,
    error_handler,
    logger,
)

__all__ = [
    # Date utilities
    "parse_date",
    "add_months",
    "clamp_day",
    "week_start",
    "month_label",
    "format_date_br",
    # Formatting
    "only_digits",
    "to_cents",
    "format_brl",
    # Error handling
    "CrecheError",
    "ValidationError",
    "CouponError",
    "error_handler",
    "logger",
]
