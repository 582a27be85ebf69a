"""
Market Pulse — Shared Formatters

Human-readable formatting for prices, percentages, readings and symbols.
Used by the engines when building signal descriptions and log events.
"""

from __future__ import annotations

import math


def format_currency(value: float | int, decimals: int = 2) -> str:
    """Format a numeric value as USD currency.

    >>> format_currency(1234.5)
    '$1,234.50'
    >>> format_currency(-789.1)
    '-$789.10'
    """
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.{decimals}f}"


def format_pct(value: float | int, decimals: int = 2, show_sign: bool = True) -> str:
    """Format a value as a percentage with optional sign.

    >>> format_pct(12.345)
    '+12.35%'
    >>> format_pct(-3.1, decimals=1)
    '-3.1%'
    """
    if show_sign and value > 0:
        return f"+{value:.{decimals}f}%"
    return f"{value:.{decimals}f}%"


def format_indicator(value: float, decimals: int = 2) -> str:
    """Format an oscillator reading, mapping NaN to 'N/A'.

    >>> format_indicator(71.234)
    '71.23'
    """
    if math.isnan(value):
        return "N/A"
    return f"{value:.{decimals}f}"


def format_ticker(raw: str) -> str:
    """Normalize a ticker symbol to uppercase, stripped of whitespace.

    >>> format_ticker('  btc ')
    'BTC'
    """
    return raw.strip().upper()
