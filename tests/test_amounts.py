# tests/test_amounts.py
"""
Tests for conversion between human-readable amounts and atomic units.
"""
from decimal import Decimal

import pytest

from xgrain402.core.amounts import from_atomic_units, parse_atomic_amount, to_atomic_units
from xgrain402.core.exceptions import ValidationError


class TestToAtomicUnits:
    """Test to_atomic_units across the accepted input types."""

    def test_float_amount(self):
        """Test that 2.5 tokens with 6 decimals is 2,500,000 units."""
        assert to_atomic_units(2.5, 6) == 2500000

    def test_small_float_is_not_truncated(self):
        """Test that 0.1 + binary noise does not leak into the result."""
        assert to_atomic_units(0.1, 6) == 100000
        assert to_atomic_units(0.3, 18) == 300000000000000000

    def test_string_and_decimal_amounts(self):
        """Test that strings and Decimals convert losslessly."""
        assert to_atomic_units("1.000001", 6) == 1000001
        assert to_atomic_units(Decimal("0.01"), 2) == 1

    def test_integer_amount(self):
        """Test that whole tokens scale by the decimals."""
        assert to_atomic_units(3, 9) == 3000000000
        assert to_atomic_units(0, 6) == 0

    def test_too_much_precision_rejected(self):
        """Test that amounts finer than the smallest unit raise instead of rounding."""
        with pytest.raises(ValidationError, match="cannot be represented"):
            to_atomic_units("0.0000001", 6)

    def test_negative_rejected(self):
        """Test that negative amounts raise ValidationError."""
        with pytest.raises(ValidationError, match="negative"):
            to_atomic_units(-1, 6)

    def test_non_numeric_rejected(self):
        """Test that garbage input raises ValidationError."""
        with pytest.raises(ValidationError):
            to_atomic_units("ten", 6)
        with pytest.raises(ValidationError):
            to_atomic_units(True, 6)
        with pytest.raises(ValidationError):
            to_atomic_units("NaN", 6)


class TestFromAtomicUnits:
    """Test from_atomic_units and its inverse relationship."""

    def test_basic_conversion(self):
        """Test that 2,500,000 units with 6 decimals is 2.5."""
        assert from_atomic_units(2500000, 6) == Decimal("2.5")

    def test_string_units(self):
        """Test that decimal-string units are accepted."""
        assert from_atomic_units("1000000000000000000", 18) == Decimal(1)

    def test_inverse_of_to_atomic_units(self):
        """Test that converting there and back yields the original amount."""
        for amount, decimals in [("2.5", 6), ("0.000001", 6), ("123.456", 9), ("7", 0)]:
            assert from_atomic_units(to_atomic_units(amount, decimals), decimals) == Decimal(amount)

    def test_negative_units_rejected(self):
        """Test that negative unit counts raise ValidationError."""
        with pytest.raises(ValidationError):
            from_atomic_units(-5, 6)


class TestParseAtomicAmount:
    """Test the strict maxAmountRequired parser."""

    def test_accepts_digit_strings_and_ints(self):
        """Test that integer strings and ints parse."""
        assert parse_atomic_amount("10000") == 10000
        assert parse_atomic_amount(" 42 ") == 42
        assert parse_atomic_amount(7) == 7

    def test_huge_values_survive(self):
        """Test that values beyond 64 bits keep full precision."""
        assert parse_atomic_amount(str(2**200)) == 2**200

    @pytest.mark.parametrize("value", ["1.5", "-1", "", "1e6", "0x10", 1.0, None])
    def test_rejects_non_integers(self, value):
        """Test that anything other than a non-negative integer is rejected."""
        with pytest.raises(ValidationError):
            parse_atomic_amount(value)
