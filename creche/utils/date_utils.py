"""
Central date utilities for the creche backend.

Dates travel through the API in ISO format (YYYY-MM-DD) while staff type
them in the Brazilian day-first format (DD/MM/YYYY); both are accepted here.

Key Features:
- Universal date parsing with format detection
- Month arithmetic for billing cycles and forecast buckets
- pt-BR month labels
"""

import calendar
from datetime import datetime, date, timedelta
from typing import Union

import pandas as pd
from dateutil.relativedelta import relativedelta

from creche.utils.error_utils import error_handler

PT_BR_MONTHS = ["jan", "fev", "mar", "abr", "mai", "jun", "jul", "ago", "set", "out", "nov", "dez"]


@error_handler
def parse_date(date_input: Union[str, datetime, date, pd.Timestamp]) -> date:
    """
    Universal date parser.

    Args:
        date_input: Date in various formats (str, datetime, date, pd.Timestamp)

    Returns:
        date: Parsed calendar date

    Raises:
        CrecheError: If the input is None, of an unsupported type or an
            unparseable string (raised as ValueError or TypeError and
            wrapped by error_handler)

    Examples:
        >>> parse_date("2025-03-15")
        datetime.date(2025, 3, 15)

        >>> parse_date("15/03/2025")
        datetime.date(2025, 3, 15)
    """
    if date_input is None:
        raise ValueError("Date input cannot be None")

    if isinstance(date_input, pd.Timestamp):
        result = date_input.date()
    elif isinstance(date_input, datetime):
        result = date_input.date()
    elif isinstance(date_input, date):
        result = date_input
    elif isinstance(date_input, str):
        result = _parse_date_string(date_input.strip())
    else:
        raise TypeError(f"Unsupported date input type: {type(date_input)}")

    return result


def _parse_date_string(date_str: str) -> date:
    """Parse ISO first, then day-first; pandas handles the rest."""
    if not date_str:
        raise ValueError("Date string cannot be empty")

    for format_str in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y"):
        try:
            return datetime.strptime(date_str, format_str).date()
        except ValueError:
            continue

    try:
        return pd.to_datetime(date_str, dayfirst=True).date()
    except (ValueError, TypeError):
        pass

    raise ValueError(
        f"Unable to parse date string '{date_str}'. Supported formats include: YYYY-MM-DD, DD/MM/YYYY"
    )


def add_months(value: date, months: int) -> date:
    """Shift a date by whole months, clamping to the end of short months."""
    return value + relativedelta(months=months)


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, using the month's last day when ``day`` overflows it."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def week_start(value: date) -> date:
    """Monday of the week containing ``value``."""
    return value - timedelta(days=value.weekday())


def month_label(value: date) -> str:
    """Short pt-BR month label, e.g. ``jan/26``."""
    return f"{PT_BR_MONTHS[value.month - 1]}/{value.strftime('%y')}"


def format_date_br(value: date) -> str:
    """Day-first display format used in documents and notifications."""
    return value.strftime("%d/%m/%Y")

