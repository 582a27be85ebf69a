"""
Market Pulse — Divergence Engine

Finds strict local extrema in price and in a momentum oscillator (RSI or the
MACD histogram) and pairs them up to flag divergences:

  Bearish: price makes a higher high while the oscillator makes a lower high.
  Bullish: price makes a lower low while the oscillator makes a higher low.

Strength is the sum of the relative price move and the relative oscillator
move between the two extrema: > 0.15 strong, > 0.08 moderate, else weak.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import structlog

from pulse.config import Settings, get_settings
from pulse.engines.indicator_engine import IndicatorEngine
from pulse.models import (
    OHLCV,
    Divergence,
    DivergenceAlert,
    DivergenceStrength,
    DivergenceType,
    Peak,
    PeakKind,
)
from pulse.observability import traced
from pulse.utils.formatters import format_currency
from pulse.utils.validators import validate_window

log = structlog.get_logger(__name__)

STRONG_THRESHOLD = 0.15
MODERATE_THRESHOLD = 0.08


class DivergenceEngine:
    """Price / oscillator divergence detector.

    Usage:
        engine = DivergenceEngine()
        divergences = engine.detect_divergences(bars)
        recent = engine.recent_divergences(divergences, len(bars))
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        indicators: Optional[IndicatorEngine] = None,
    ):
        self.settings = settings or get_settings()
        self.indicators = indicators or IndicatorEngine(self.settings)

    # ──────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────

    @traced("divergence_engine.detect_divergences", tags=["divergence"])
    def detect_divergences(self, bars: Sequence[OHLCV]) -> list[Divergence]:
        """Detect RSI and MACD-histogram divergences over the full series.

        Returns the `divergence_max_results` most recent divergences,
        ordered by end index descending.
        """
        s = self.settings
        if len(bars) < s.divergence_min_bars:
            log.debug("divergence.insufficient_data", bars=len(bars), required=s.divergence_min_bars)
            return []

        closes = self.indicators.closes_from_bars(bars)
        rsi = self.indicators.rsi(closes)
        histogram = self.indicators.macd(closes).histogram

        found = self.detect(closes, rsi, "RSI") + self.detect(closes, histogram, "MACD")
        found.sort(key=lambda d: d.end_index, reverse=True)  # stable: ties keep RSI first

        log.debug("divergence.detected", bars=len(bars), found=len(found))
        return found[:s.divergence_max_results]

    def detect(
        self,
        prices: Sequence[float],
        indicator_values: Sequence[float],
        indicator_name: str,
        window: Optional[int] = None,
        max_distance: Optional[int] = None,
    ) -> list[Divergence]:
        """Compare consecutive price extrema against the oscillator's extrema.

        Each price extremum is matched to the first oscillator extremum of
        the same kind within ``window + 2`` positions.
        """
        window = validate_window(
            self.settings.divergence_peak_window if window is None else window, "window"
        )
        max_distance = validate_window(
            self.settings.divergence_max_distance if max_distance is None else max_distance, "max_distance"
        )
        tolerance = window + 2

        price_peaks = self.find_peaks(prices, window)
        ind_peaks = self.find_peaks(indicator_values, window)

        price_highs = [p for p in price_peaks if p.kind == PeakKind.HIGH]
        price_lows = [p for p in price_peaks if p.kind == PeakKind.LOW]
        ind_highs = [p for p in ind_peaks if p.kind == PeakKind.HIGH]
        ind_lows = [p for p in ind_peaks if p.kind == PeakKind.LOW]

        divergences: list[Divergence] = []

        # Bearish: higher high in price, lower high in the oscillator
        for p1, p2 in zip(price_highs, price_highs[1:]):
            if p2.index - p1.index > max_distance or p2.value <= p1.value:
                continue
            i1 = self._match(ind_highs, p1.index, tolerance)
            i2 = self._match(ind_highs, p2.index, tolerance)
            if i1 is None or i2 is None or i2.value >= i1.value:
                continue

            price_move = (p2.value - p1.value) / abs(p1.value or 1)
            ind_move = (i1.value - i2.value) / abs(i1.value or 1)
            divergences.append(Divergence(
                type=DivergenceType.BEARISH,
                indicator=indicator_name,
                start_index=p1.index,
                end_index=p2.index,
                price_start=p1.value,
                price_end=p2.value,
                indicator_start=i1.value,
                indicator_end=i2.value,
                strength=self.classify_strength(price_move + ind_move),
                description=(
                    f"Price made a higher high ({format_currency(p2.value)} vs {format_currency(p1.value)}) "
                    f"while {indicator_name} made a lower high ({i2.value:.2f} vs {i1.value:.2f}). "
                    "This suggests weakening momentum."
                ),
            ))

        # Bullish: lower low in price, higher low in the oscillator
        for p1, p2 in zip(price_lows, price_lows[1:]):
            if p2.index - p1.index > max_distance or p2.value >= p1.value:
                continue
            i1 = self._match(ind_lows, p1.index, tolerance)
            i2 = self._match(ind_lows, p2.index, tolerance)
            if i1 is None or i2 is None or i2.value <= i1.value:
                continue

            price_move = (p1.value - p2.value) / abs(p1.value or 1)
            ind_move = (i2.value - i1.value) / abs(i1.value or 1)
            divergences.append(Divergence(
                type=DivergenceType.BULLISH,
                indicator=indicator_name,
                start_index=p1.index,
                end_index=p2.index,
                price_start=p1.value,
                price_end=p2.value,
                indicator_start=i1.value,
                indicator_end=i2.value,
                strength=self.classify_strength(price_move + ind_move),
                description=(
                    f"Price made a lower low ({format_currency(p2.value)} vs {format_currency(p1.value)}) "
                    f"while {indicator_name} made a higher low ({i2.value:.2f} vs {i1.value:.2f}). "
                    "This suggests building momentum."
                ),
            ))

        return divergences

    def recent_divergences(
        self,
        divergences: Sequence[Divergence],
        length: int,
        recent_window: Optional[int] = None,
    ) -> list[Divergence]:
        """Keep divergences ending within the last `recent_window` bars."""
        recent_window = self.settings.divergence_recent_window if recent_window is None else recent_window
        threshold = length - recent_window
        return [d for d in divergences if d.end_index >= threshold]

    def alert_summary(self, bars: Sequence[OHLCV]) -> DivergenceAlert:
        """Divergences plus the recent subset the alert banner shows."""
        divergences = self.detect_divergences(bars)
        recent = self.recent_divergences(divergences, len(bars))
        strongest = next((d for d in recent if d.strength == DivergenceStrength.STRONG), None)

        if strongest is not None:
            log.info(
                "divergence.strong_recent",
                type=strongest.type.value,
                indicator=strongest.indicator,
                end_index=strongest.end_index,
            )

        return DivergenceAlert(
            divergences=divergences,
            recent=recent,
            bullish_count=sum(1 for d in recent if d.type == DivergenceType.BULLISH),
            bearish_count=sum(1 for d in recent if d.type == DivergenceType.BEARISH),
            strongest=strongest,
        )

    # ──────────────────────────────────────────
    # Helpers
    # ──────────────────────────────────────────

    @staticmethod
    def find_peaks(values: Sequence[float], window: int = 5) -> list[Peak]:
        """Find strict local highs and lows over ``[i - window, i + window]``.

        NaN entries are skipped both as candidates and as neighbours.
        """
        peaks: list[Peak] = []
        for i in range(window, len(values) - window):
            v = values[i]
            if _is_nan(v):
                continue

            is_high = True
            is_low = True
            for j in range(i - window, i + window + 1):
                if j == i or _is_nan(values[j]):
                    continue
                if values[j] >= v:
                    is_high = False
                if values[j] <= v:
                    is_low = False

            if is_high:
                peaks.append(Peak(index=i, value=float(v), kind=PeakKind.HIGH))
            if is_low:
                peaks.append(Peak(index=i, value=float(v), kind=PeakKind.LOW))
        return peaks

    @staticmethod
    def classify_strength(combined: float) -> DivergenceStrength:
        if combined > STRONG_THRESHOLD:
            return DivergenceStrength.STRONG
        if combined > MODERATE_THRESHOLD:
            return DivergenceStrength.MODERATE
        return DivergenceStrength.WEAK

    @staticmethod
    def _match(peaks: list[Peak], index: int, tolerance: int) -> Optional[Peak]:
        # First peak in index order wins; no nearest-peak tie-break.
        return next((p for p in peaks if abs(p.index - index) <= tolerance), None)


def _is_nan(value) -> bool:
    return value is None or math.isnan(value)
