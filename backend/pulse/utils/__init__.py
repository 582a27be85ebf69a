# Shared utilities: formatters, validators
from pulse.utils.formatters import (
    format_currency,
    format_indicator,
    format_pct,
    format_ticker,
)
from pulse.utils.validators import validate_fraction, validate_non_negative, validate_window

__all__ = [
    "format_currency",
    "format_indicator",
    "format_pct",
    "format_ticker",
    "validate_fraction",
    "validate_non_negative",
    "validate_window",
]
