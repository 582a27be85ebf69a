"""
Market Pulse — Multi-Timeframe Engine

Scores the trend of one asset on several timeframes (e.g. 1W / 1M / 3M) from
three votes: price vs SMA, MACD histogram sign, and RSI vs 50. Then reports
whether the timeframes agree.
"""

from __future__ import annotations

import math
from typing import Mapping, Optional, Sequence

import structlog

from pulse.config import Settings, get_settings
from pulse.engines.indicator_engine import IndicatorEngine
from pulse.models import OHLCV, TimeframeAnalysis, TimeframeSummary, Trend
from pulse.utils.formatters import format_indicator, format_pct

log = structlog.get_logger(__name__)


class TimeframeEngine:
    """Multi-timeframe trend confluence.

    Usage:
        engine = TimeframeEngine()
        summary = engine.summarize({"1W": weekly, "1M": monthly, "3M": quarterly})
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        indicators: Optional[IndicatorEngine] = None,
    ):
        self.settings = settings or get_settings()
        self.indicators = indicators or IndicatorEngine(self.settings)

    def analyze(self, label: str, bars: Sequence[OHLCV]) -> TimeframeAnalysis:
        """Trend snapshot for a single timeframe."""
        if not bars or len(bars) < self.settings.timeframe_min_bars:
            log.debug("timeframe.insufficient_data", label=label, bars=len(bars))
            return TimeframeAnalysis(label=label, bars=len(bars))

        closes = self.indicators.closes_from_bars(bars)
        last_price = closes[-1]

        rsi = self.indicators.last_value(self.indicators.rsi(closes))
        sma = self.indicators.last_value(self.indicators.sma(closes, max(1, min(20, len(closes) - 1))))
        histogram = self.indicators.last_value(self.indicators.macd(closes).histogram)

        # NaN comparisons are False, so undefined readings vote against the trend
        sma_signal = "above" if last_price > sma else "below"
        macd_signal = "bullish" if not math.isnan(histogram) and histogram > 0 else "bearish"

        votes = (
            (1 if sma_signal == "above" else -1)
            + (1 if macd_signal == "bullish" else -1)
            + (1 if rsi > 50 else -1)
        )
        if votes >= 2:
            trend = Trend.BULLISH
        elif votes <= -2:
            trend = Trend.BEARISH
        else:
            trend = Trend.NEUTRAL

        first_price = closes[0]
        price_change = (last_price - first_price) / first_price * 100 if first_price else 0.0

        log.debug(
            "timeframe.analyzed",
            label=label,
            trend=trend.value,
            rsi=format_indicator(rsi),
            change=format_pct(price_change),
        )
        return TimeframeAnalysis(
            label=label,
            bars=len(bars),
            trend=trend,
            rsi=rsi,
            sma_signal=sma_signal,
            macd_signal=macd_signal,
            price_change=price_change,
            volatility=self.indicators.volatility(closes),
        )

    def summarize(self, bars_by_label: Mapping[str, Sequence[OHLCV]]) -> TimeframeSummary:
        """Analyze every timeframe and classify their alignment."""
        analyses = [self.analyze(label, bars) for label, bars in bars_by_label.items()]
        valid = [a for a in analyses if a.bars and a.bars >= self.settings.timeframe_min_bars]

        if not valid:
            alignment = "neutral"
        elif all(a.trend == Trend.BULLISH for a in valid):
            alignment = "aligned-bullish"
        elif all(a.trend == Trend.BEARISH for a in valid):
            alignment = "aligned-bearish"
        else:
            alignment = "mixed"

        log.debug("timeframe.summarized", timeframes=len(analyses), alignment=alignment)
        return TimeframeSummary(analyses=analyses, alignment=alignment)
