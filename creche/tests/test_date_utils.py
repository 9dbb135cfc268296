"""
Test suite for date utilities in the creche backend.
"""

import sys
import os
import pytest
from datetime import datetime, date
import pandas as pd

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from creche.utils.date_utils import (
    add_months,
    clamp_day,
    format_date_br,
    month_label,
    parse_date,
    week_start,
)
from creche.utils.error_utils import CrecheError


def test_parse_date_iso_format():
    """Test parsing ISO format dates."""
    assert parse_date("2025-03-15") == date(2025, 3, 15)


def test_parse_date_day_first_format():
    """Test parsing the Brazilian day-first format."""
    assert parse_date("15/03/2025") == date(2025, 3, 15)
    assert parse_date("05-03-2025") == date(2025, 3, 5)


def test_parse_date_datetime_and_timestamp():
    """Test parsing datetime objects and pandas timestamps."""
    assert parse_date(datetime(2024, 6, 15, 10, 30)) == date(2024, 6, 15)
    assert parse_date(pd.Timestamp("2024-06-15")) == date(2024, 6, 15)


def test_parse_date_invalid_input():
    """Invalid strings and None are reported as CrecheError."""
    with pytest.raises(CrecheError):
        parse_date("not a date")
    with pytest.raises(CrecheError):
        parse_date(None)


def test_add_months_clamps_to_month_end():
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2026, 3, 15), -3) == date(2025, 12, 15)


def test_clamp_day():
    assert clamp_day(2024, 2, 30) == date(2024, 2, 29)
    assert clamp_day(2026, 4, 31) == date(2026, 4, 30)
    assert clamp_day(2026, 5, 10) == date(2026, 5, 10)


def test_week_start():
    # 2026-10-22 is a Thursday
    assert week_start(date(2026, 10, 22)) == date(2026, 10, 19)
    assert week_start(date(2026, 10, 19)) == date(2026, 10, 19)


def test_labels():
    assert month_label(date(2026, 3, 1)) == "mar/26"
    assert month_label(date(2025, 12, 9)) == "dez/25"
    assert format_date_br(date(2026, 1, 5)) == "05/01/2026"
