"""
Lossless conversion between human-readable amounts and atomic token units.

Every conversion goes through :class:`decimal.Decimal`; floats are routed via
their ``str`` representation so ``2.5`` stays ``2.5`` rather than the nearest
binary fraction.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

from .exceptions import ValidationError

__all__ = [
    "AmountLike",
    "from_atomic_units",
    "parse_atomic_amount",
    "to_atomic_units",
]

AmountLike = Union[Decimal, str, int, float]


def _as_decimal(amount: AmountLike) -> Decimal:
    if isinstance(amount, bool):
        raise ValidationError(f"Amount must be numeric, got {amount!r}")
    if isinstance(amount, float):
        amount = str(amount)
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(f"Amount must be a decimal number, got {amount!r}") from exc
    if not value.is_finite():
        raise ValidationError(f"Amount must be finite, got {amount!r}")
    return value


def _check_decimals(decimals: int) -> int:
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise ValidationError(f"Decimals must be a non-negative integer, got {decimals!r}")
    return decimals


def to_atomic_units(amount: AmountLike, decimals: int) -> int:
    """
    Convert ``amount`` expressed in whole tokens to an integer of atomic units.

    Raises :class:`ValidationError` when the amount is negative or carries more
    precision than ``decimals`` allows.
    """
    decimals = _check_decimals(decimals)
    value = _as_decimal(amount)
    if value < 0:
        raise ValidationError(f"Amount must not be negative, got {amount!r}")

    scaled = value.scaleb(decimals)
    try:
        integral = scaled.to_integral_exact()
    except InvalidOperation as exc:
        raise ValidationError(
            f"Amount {amount} cannot be represented with {decimals} decimals"
        ) from exc
    if integral != scaled:
        raise ValidationError(
            f"Amount {amount} cannot be represented with {decimals} decimals"
        )
    return int(integral)


def from_atomic_units(units: Union[int, str], decimals: int) -> Decimal:
    """Convert atomic units back to a whole-token :class:`Decimal`."""
    decimals = _check_decimals(decimals)
    value = parse_atomic_amount(units) if isinstance(units, str) else units
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Atomic units must be an integer, got {units!r}")
    if value < 0:
        raise ValidationError(f"Atomic units must not be negative, got {units!r}")
    return Decimal(value).scaleb(-decimals)


def parse_atomic_amount(value: Union[int, str]) -> int:
    """
    Parse a ``maxAmountRequired``-style value into an ``int``.

    Only non-negative base-10 integer strings (or ints) are accepted; anything
    resembling a float is rejected rather than rounded.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Atomic amount must be an integer string, got {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValidationError(f"Atomic amount must not be negative, got {value}")
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Atomic amount must be an integer string, got {value!r}")

    text = value.strip()
    if not text or not text.isdigit() or not text.isascii():
        raise ValidationError(f"Atomic amount must be an integer string, got {value!r}")
    return int(text)
