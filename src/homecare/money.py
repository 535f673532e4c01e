"""Utilities for working with monetary and numeric record values."""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Union

from .config import DEFAULT_CURRENCY

CENT = Decimal("0.01")
ZERO = Decimal("0")

AmountLike = Union[Decimal, int, float, str]
Number = Union[int, float]


def to_number(value: Any, default: Number = 0) -> Number:
    """Coerce a stored field to a number, falling back to ``default``.

    Integral inputs stay integers so that values written back to the JSON blob
    keep their original shape. Booleans, blanks, ``NaN`` and anything that does
    not parse count as missing.
    """

    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else default
    if isinstance(value, Decimal):
        return to_number(float(value), default)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            return default
        return parsed if math.isfinite(parsed) else default
    return default


def coerce_amount(value: Any) -> Decimal:
    """Return ``value`` as a Decimal amount, treating junk as zero."""

    number = to_number(value)
    if not number:
        return ZERO
    try:
        return Decimal(str(number))
    except InvalidOperation:
        return ZERO


def format_currency(amount: Any, currency: str = DEFAULT_CURRENCY) -> str:
    """Return ``amount`` formatted with ``currency`` (e.g. ``KES 1,500.00``)."""

    value = coerce_amount(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    code = (currency or DEFAULT_CURRENCY).strip().upper() or DEFAULT_CURRENCY
    if value < ZERO:
        return f"-{code} {-value:,.2f}"
    return f"{code} {value:,.2f}"
