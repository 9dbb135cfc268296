"""
Test suite for formatting helpers.
"""

import sys
import os
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from creche.utils.format_utils import format_brl, only_digits, to_cents


def test_format_brl():
    assert format_brl(1299.9) == "R$ 1.299,90"
    assert format_brl(0) == "R$ 0,00"
    assert format_brl(1234567.891) == "R$ 1.234.567,89"
    assert format_brl(-5) == "-R$ 5,00"


def test_to_cents_rounds_half_up():
    assert to_cents(1.005) == Decimal("1.01")
    assert to_cents(Decimal("33.333")) == Decimal("33.33")
    assert to_cents(10) == Decimal("10.00")


def test_only_digits():
    assert only_digits("123.456.789-09") == "12345678909"
    assert only_digits("(11) 98888-7777") == "11988887777"
    assert only_digits("") is None
    assert only_digits(None) is None
