"""
Market Pulse — Pydantic Models

All I/O schemas for the signal engine. Engines consume OHLCV bars and
return these models; the rendering layer serializes them.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# ──────────────────────────────────────────────
# Enums
# ──────────────────────────────────────────────

class PatternType(str, Enum):
    """Directional bias of a candlestick pattern."""
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class Reliability(str, Enum):
    """How much weight a pattern carries on its own."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PeakKind(str, Enum):
    HIGH = "high"
    LOW = "low"


class DivergenceType(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"


class DivergenceStrength(str, Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


class Trend(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


# ──────────────────────────────────────────────
# Market Data Models
# ──────────────────────────────────────────────

class OHLCV(BaseModel):
    """Single OHLCV bar. ``time`` is whole seconds since the epoch."""
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


# ──────────────────────────────────────────────
# Signal Models
# ──────────────────────────────────────────────

class Pattern(BaseModel):
    """A detected candlestick pattern."""
    name: str
    type: PatternType
    description: str
    index: int  # absolute position in the full bar list
    reliability: Reliability


class PatternSummary(BaseModel):
    """Counts and overall bias for a pattern list."""
    pattern_count: int = 0
    bullish_count: int = 0
    bearish_count: int = 0
    neutral_count: int = 0
    overall_bias: PatternType = PatternType.NEUTRAL


class Peak(BaseModel):
    """Strict local extremum over a symmetric window."""
    index: int
    value: float
    kind: PeakKind


class Divergence(BaseModel):
    """Price / oscillator disagreement between two consecutive extrema."""
    type: DivergenceType
    indicator: str  # "RSI" | "MACD"
    start_index: int
    end_index: int
    price_start: float
    price_end: float
    indicator_start: float
    indicator_end: float
    strength: DivergenceStrength
    description: str = ""


class DivergenceAlert(BaseModel):
    """Recent-divergence digest used by the alert banner."""
    divergences: list[Divergence] = []
    recent: list[Divergence] = []
    bullish_count: int = 0
    bearish_count: int = 0
    strongest: Optional[Divergence] = None


# ──────────────────────────────────────────────
# Cross-Asset Models
# ──────────────────────────────────────────────

class CorrelationMatrix(BaseModel):
    """Square, symmetric Pearson matrix with a unit diagonal."""
    symbols: list[str] = []
    values: list[list[float]] = []

    def get(self, a: str, b: str) -> float:
        """Look up the correlation between two symbols."""
        return self.values[self.symbols.index(a)][self.symbols.index(b)]


class TreemapItem(BaseModel):
    """Weighted heatmap entry."""
    label: str
    weight: float
    metric: float = 0.0           # e.g. 24h change %, drives the colour
    value: Optional[float] = None  # raw market cap the weight came from


class TreemapRect(BaseModel):
    """Placed rectangle for one treemap item."""
    x: float
    y: float
    w: float
    h: float
    label: str
    weight: float
    metric: float = 0.0
    value: Optional[float] = None

    @property
    def area(self) -> float:
        return self.w * self.h


# ──────────────────────────────────────────────
# Volume Profile Models
# ──────────────────────────────────────────────

class VolumeLevel(BaseModel):
    """Volume traded inside one price bin."""
    price: float
    volume: float
    buy_volume: float = 0.0
    sell_volume: float = 0.0
    percentage: float = 0.0  # of the busiest level
    is_buy: bool = False


class VolumeProfile(BaseModel):
    """Price-at-volume histogram with Point of Control and Value Area."""
    levels: list[VolumeLevel] = []
    poc: VolumeLevel
    value_area_high: float
    value_area_low: float
    total_volume: float


# ──────────────────────────────────────────────
# Multi-Timeframe Models
# ──────────────────────────────────────────────

class TimeframeAnalysis(BaseModel):
    """Trend snapshot for one timeframe."""
    label: str
    bars: int = 0
    trend: Trend = Trend.NEUTRAL
    rsi: float = float("nan")
    sma_signal: str = "above"     # "above" | "below"
    macd_signal: str = "neutral"  # "bullish" | "bearish" | "neutral"
    price_change: float = 0.0     # percent, first → last close
    volatility: float = 0.0       # percent


class TimeframeSummary(BaseModel):
    """Analyses across timeframes and their alignment."""
    analyses: list[TimeframeAnalysis] = Field(default_factory=list)
    alignment: str = "neutral"  # aligned-bullish | aligned-bearish | mixed | neutral
