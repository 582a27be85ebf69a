"""Market Pulse — technical-analysis and signal-detection engine."""

__version__ = "0.1.0"
