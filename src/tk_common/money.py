"""Money helpers for ticket prices and totals.

Prices arrive from the store as numbers or numeric-looking strings. A
string is read up to the end of its leading number, so a trailing
currency sign or code is ignored. Anything without a leading finite
number is treated as 0 so a single bad record never breaks a total.

Accumulation happens in full float precision; rounding to cents is done
when a total is produced, never on the running sum.
"""

import math
import re
from collections.abc import Iterable

# Leading number of a price string: "10€" -> 10, "12.50 EUR" -> 12.5
_LEADING_NUMBER = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def to_amount(value: object) -> float:
    """Coerce a stored price to a finite float, or 0.0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        amount = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if match is None:
            return 0.0
        amount = float(match.group(0))
    else:
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def to_quantity(value: object) -> int:
    """Coerce a stored quantity to a non-negative int, or 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        return max(int(value), 0) if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            return max(int(float(value.strip())), 0)
        except (ValueError, OverflowError):
            return 0
    return 0


def exact_sum(amounts: Iterable[float]) -> float:
    """Order-independent, full-precision sum (math.fsum)."""
    return math.fsum(amounts)


def round_amount(amount: float) -> float:
    """Round to cents. Call once, on the final value."""
    return round(amount, 2)


def format_amount(amount: float) -> str:
    """Display form: 35 -> '35.00', 12.5 -> '12.50'."""
    return f"{round_amount(amount):.2f}"
