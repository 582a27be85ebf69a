"""
Market Pulse — Configuration Management

Pydantic Settings: loads from .env, validates all engine parameters at startup.
Every window, threshold and truncation count the engines use lives here so
callers can tune detection without touching engine code.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Core ──
    slow_span_threshold_s: float = 5.0

    # ── Indicators ──
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    bollinger_window: int = 20
    bollinger_std: float = 2.0

    # ── Candlestick Patterns ──
    pattern_lookback: int = 50
    pattern_max_results: int = 10

    # ── Divergences ──
    divergence_peak_window: int = 5
    divergence_max_distance: int = 25
    divergence_min_bars: int = 30
    divergence_max_results: int = 10
    divergence_recent_window: int = 20

    # ── Correlation ──
    correlation_min_points: int = 5

    # ── Treemap ──
    treemap_flip_every: int = 3  # items per slicing direction

    # ── Volume Profile ──
    volume_profile_bins: int = 20
    value_area_pct: float = 0.70

    # ── Multi-Timeframe ──
    timeframe_min_bars: int = 14


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance, created once and reused everywhere."""
    return Settings()
