"""Text-to-numeric-text normalization for grid inputs.

Every quantity and price typed into the grid passes through :func:`sanitize`
before it is stored, so stored text is always digits with at most one decimal
point. :func:`to_number` is the only way stored text becomes a number.
"""

from __future__ import annotations

import re
from contextlib import AbstractContextManager
from decimal import MAX_PREC, Context, Decimal, InvalidOperation, localcontext
from typing import Any

_NON_NUMERIC = re.compile(r"[^0-9.]")

ZERO = Decimal("0")


def exact_context() -> AbstractContextManager[Context]:
    """Decimal context in which sums, products and quantize never round."""

    return localcontext(prec=MAX_PREC)


def sanitize(text: Any, max_decimals: int | None = None) -> str:
    """Strip everything but digits and dots; keep a single decimal point.

    Digits after the first dot are collapsed into one fractional run, so
    ``"12.3.4"`` becomes ``"12.34"``. ``max_decimals`` caps the fractional run;
    ``0`` keeps only the integer part. Never raises.
    """

    cleaned = _NON_NUMERIC.sub("", "" if text is None else str(text))
    if not cleaned:
        return ""
    int_part, sep, frac_raw = cleaned.partition(".")
    if not sep:
        return int_part
    frac = frac_raw.replace(".", "")
    if max_decimals is not None:
        if max_decimals <= 0:
            return int_part
        frac = frac[:max_decimals]
    return f"{int_part}.{frac}"


def to_number(text: Any) -> Decimal:
    """Parse sanitized text into a finite, non-negative Decimal (empty -> 0)."""

    if text is None:
        return ZERO
    if isinstance(text, Decimal):
        value = text
    elif isinstance(text, (int, float)):
        value = Decimal(str(text))
    else:
        raw = str(text).replace(",", "").strip()
        if not raw or not raw.isascii():
            return ZERO
        try:
            value = Decimal(raw)
        except InvalidOperation:
            return ZERO
    if not value.is_finite() or value < 0:
        return ZERO
    return value


def format_quantity(value: Decimal | int | float) -> str:
    """Render a number as sanitized text without exponent or trailing zeros."""

    number = to_number(value)
    if number == 0:
        return "0"
    with exact_context():
        return format(number.normalize(), "f")
