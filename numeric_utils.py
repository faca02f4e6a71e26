"""
Numeric guards shared by every dashboard formula.
"""
import numbers
from typing import Any

import numpy as np


def safe_number(value: Any) -> float:
    """
    Coerce any value to a finite float, using 0.0 when that is not possible.

    Real numbers (including numpy scalars) pass through, strings are parsed,
    and booleans, None, containers, NaN, infinities and ints too large for a
    float all become 0.0. Strings must be a whole numeric literal: "12abc" is
    0.0, not 12 (no numeric-prefix parsing).

    Args:
        value: Arbitrary input from a form field or decoded record

    Returns:
        Finite float
    """
    if isinstance(value, (bool, np.bool_)):
        return 0.0

    if not isinstance(value, (numbers.Real, str)):
        return 0.0

    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (OverflowError, ValueError):
        return 0.0

    return number if np.isfinite(number) else 0.0


def clamp(n: float, lo: float, hi: float) -> float:
    """Bound n into [lo, hi]"""
    return max(lo, min(hi, n))
