"""
Market Pulse — Input Validators

Guards for engine parameters. Bad *data* never raises inside the engines;
bad *parameters* are caller bugs and raise ValueError so callers can map
them to 400 responses.
"""

from __future__ import annotations

import math


def validate_window(value: int, name: str = "window") -> int:
    """Validate a window / period length.

    >>> validate_window(14, "period")
    14
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value}")
    return value


def validate_fraction(value: float, name: str = "fraction") -> float:
    """Validate a fraction in the half-open range (0, 1].

    >>> validate_fraction(0.7, "value_area_pct")
    0.7
    """
    if math.isnan(value) or value <= 0 or value > 1:
        raise ValueError(f"{name} must be in (0, 1], got {value}")
    return value


def validate_non_negative(value: float, name: str = "value") -> float:
    """Validate a finite, non-negative multiplier."""
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise ValueError(f"{name} must be a finite non-negative number, got {value}")
    return value
