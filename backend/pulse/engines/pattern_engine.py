"""
Market Pulse — Pattern Detection Engine

Rule-based detection of candlestick patterns from OHLCV data.
Deterministic analysis, no ML required.

Candlestick Patterns:
  Single:  Doji, Hammer / Hanging Man, Shooting Star / Inverted Hammer,
           Marubozu (Bull/Bear)
  Double:  Engulfing (Bull/Bear), Piercing Line, Dark Cloud Cover
  Triple:  Morning/Evening Star, Three White Soldiers, Three Black Crows

All shape thresholds are relative to the average body size of the scanned
window, so the same rules work for a $0.50 token and a $60,000 coin.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import structlog

from pulse.config import Settings, get_settings
from pulse.models import OHLCV, Pattern, PatternSummary, PatternType, Reliability
from pulse.observability import traced
from pulse.utils.validators import validate_window

log = structlog.get_logger(__name__)


class PatternEngine:
    """Rule-based candlestick pattern detector.

    Usage:
        engine = PatternEngine()
        patterns = engine.detect_candlestick_patterns(bars)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    # ──────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────

    @traced("pattern_engine.detect_candlestick_patterns", tags=["patterns"])
    def detect_candlestick_patterns(
        self,
        bars: Sequence[OHLCV],
        lookback: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> list[Pattern]:
        """Scan the most recent `lookback` bars for candlestick patterns.

        Returns the last `max_results` matches in scan order (ascending
        index), each tagged with its index in the full bar list.
        """
        lookback = validate_window(
            self.settings.pattern_lookback if lookback is None else lookback, "lookback"
        )
        max_results = validate_window(
            self.settings.pattern_max_results if max_results is None else max_results, "max_results"
        )

        if len(bars) < 3:
            log.debug("patterns.insufficient_data", bars=len(bars))
            return []

        recent = bars[-lookback:]
        offset = len(bars) - len(recent)

        o = np.array([b.open for b in recent], dtype=float)
        h = np.array([b.high for b in recent], dtype=float)
        l = np.array([b.low for b in recent], dtype=float)
        c = np.array([b.close for b in recent], dtype=float)

        # Fixed window-wide baseline, not a rolling one
        avg_body = float(np.mean(np.abs(c - o)))

        patterns: list[Pattern] = []

        for i in range(len(recent)):
            idx = offset + i

            # ── Single-bar patterns ──
            patterns.extend(self._single_bar(o, h, l, c, i, idx, avg_body))

            # ── Double-bar patterns ──
            if i >= 1:
                patterns.extend(self._double_bar(o, h, l, c, i, idx))

            # ── Triple-bar patterns ──
            if i >= 2:
                patterns.extend(self._triple_bar(o, c, i, idx, avg_body))

        log.debug("patterns.detected", scanned=len(recent), matched=len(patterns), avg_body=avg_body)
        return patterns[-max_results:]

    @staticmethod
    def summarize(patterns: Sequence[Pattern]) -> PatternSummary:
        """Count patterns by direction and derive an overall bias."""
        bullish = sum(1 for p in patterns if p.type == PatternType.BULLISH)
        bearish = sum(1 for p in patterns if p.type == PatternType.BEARISH)
        neutral = len(patterns) - bullish - bearish

        if bullish > bearish:
            bias = PatternType.BULLISH
        elif bearish > bullish:
            bias = PatternType.BEARISH
        else:
            bias = PatternType.NEUTRAL

        return PatternSummary(
            pattern_count=len(patterns),
            bullish_count=bullish,
            bearish_count=bearish,
            neutral_count=neutral,
            overall_bias=bias,
        )

    # ──────────────────────────────────────────
    # Single-Bar Candlestick Patterns
    # ──────────────────────────────────────────

    def _single_bar(self, o, h, l, c, i: int, idx: int, avg_body: float) -> list[Pattern]:
        """Detect single-bar patterns at position i."""
        patterns = []
        body = abs(c[i] - o[i])
        rng = h[i] - l[i]
        upper_shadow = h[i] - max(o[i], c[i])
        lower_shadow = min(o[i], c[i]) - l[i]
        bullish = c[i] > o[i]
        bearish = c[i] < o[i]

        # Doji: tiny body, meaningful range
        if body < avg_body * 0.1 and rng > avg_body * 0.5:
            patterns.append(Pattern(
                name="Doji", type=PatternType.NEUTRAL,
                description="Indecision - potential reversal",
                index=idx, reliability=Reliability.MEDIUM,
            ))

        # Hammer / Hanging Man: long lower shadow
        if lower_shadow > body * 2 and upper_shadow < body * 0.5 and body > avg_body * 0.3:
            patterns.append(Pattern(
                name="Hammer" if bullish else "Hanging Man",
                type=PatternType.BULLISH if bullish else PatternType.BEARISH,
                description="Bullish reversal signal" if bullish else "Bearish reversal signal",
                index=idx, reliability=Reliability.HIGH,
            ))

        # Shooting Star / Inverted Hammer: long upper shadow
        if upper_shadow > body * 2 and lower_shadow < body * 0.5 and body > avg_body * 0.3:
            patterns.append(Pattern(
                name="Shooting Star" if bearish else "Inverted Hammer",
                type=PatternType.BEARISH if bearish else PatternType.BULLISH,
                description="Bearish reversal signal" if bearish else "Potential bullish reversal",
                index=idx, reliability=Reliability.HIGH,
            ))

        # Marubozu: full body, almost no shadows
        if body > avg_body * 1.5 and upper_shadow < body * 0.05 and lower_shadow < body * 0.05:
            patterns.append(Pattern(
                name="Bullish Marubozu" if bullish else "Bearish Marubozu",
                type=PatternType.BULLISH if bullish else PatternType.BEARISH,
                description="Strong momentum continuation",
                index=idx, reliability=Reliability.HIGH,
            ))

        return patterns

    # ──────────────────────────────────────────
    # Double-Bar Candlestick Patterns
    # ──────────────────────────────────────────

    def _double_bar(self, o, h, l, c, i: int, idx: int) -> list[Pattern]:
        """Detect two-bar patterns ending at position i."""
        patterns = []
        prev = i - 1

        body_now = abs(c[i] - o[i])
        body_prev = abs(c[prev] - o[prev])
        prev_red, prev_green = c[prev] < o[prev], c[prev] > o[prev]
        now_red, now_green = c[i] < o[i], c[i] > o[i]
        prev_mid = (o[prev] + c[prev]) / 2

        # Bullish Engulfing
        if (prev_red and now_green and
                body_now > body_prev * 1.2 and
                o[i] < c[prev] and c[i] > o[prev]):  # body engulfs
            patterns.append(Pattern(
                name="Bullish Engulfing", type=PatternType.BULLISH,
                description="Strong bullish reversal pattern",
                index=idx, reliability=Reliability.HIGH,
            ))

        # Bearish Engulfing
        elif (prev_green and now_red and
              body_now > body_prev * 1.2 and
              o[i] > c[prev] and c[i] < o[prev]):
            patterns.append(Pattern(
                name="Bearish Engulfing", type=PatternType.BEARISH,
                description="Strong bearish reversal pattern",
                index=idx, reliability=Reliability.HIGH,
            ))

        # Piercing Line: gap below prior low, recovers past the midpoint
        if (prev_red and now_green and
                o[i] < l[prev] and
                prev_mid < c[i] < o[prev]):
            patterns.append(Pattern(
                name="Piercing Line", type=PatternType.BULLISH,
                description="Bullish reversal - closes above midpoint",
                index=idx, reliability=Reliability.MEDIUM,
            ))

        # Dark Cloud Cover: gap above prior high, falls past the midpoint
        if (prev_green and now_red and
                o[i] > h[prev] and
                o[prev] < c[i] < prev_mid):
            patterns.append(Pattern(
                name="Dark Cloud Cover", type=PatternType.BEARISH,
                description="Bearish reversal - closes below midpoint",
                index=idx, reliability=Reliability.MEDIUM,
            ))

        return patterns

    # ──────────────────────────────────────────
    # Triple-Bar Candlestick Patterns
    # ──────────────────────────────────────────

    def _triple_bar(self, o, c, i: int, idx: int, avg_body: float) -> list[Pattern]:
        """Detect three-bar patterns ending at position i."""
        patterns = []
        p1, p2 = i - 2, i - 1  # first, middle

        body_1 = abs(c[p1] - o[p1])
        body_2 = abs(c[p2] - o[p2])
        body_3 = abs(c[i] - o[i])
        first_mid = (o[p1] + c[p1]) / 2

        # Morning Star (bullish)
        if (c[p1] < o[p1] and body_1 > avg_body and  # big red
                body_2 < avg_body * 0.3 and  # small body / doji
                c[i] > o[i] and body_3 > avg_body and  # big green
                c[i] > first_mid):  # closes above midpoint of first
            patterns.append(Pattern(
                name="Morning Star", type=PatternType.BULLISH,
                description="Strong bullish reversal (3-candle)",
                index=idx, reliability=Reliability.HIGH,
            ))

        # Evening Star (bearish)
        if (c[p1] > o[p1] and body_1 > avg_body and  # big green
                body_2 < avg_body * 0.3 and
                c[i] < o[i] and body_3 > avg_body and  # big red
                c[i] < first_mid):
            patterns.append(Pattern(
                name="Evening Star", type=PatternType.BEARISH,
                description="Strong bearish reversal (3-candle)",
                index=idx, reliability=Reliability.HIGH,
            ))

        bodies = (body_1, body_2, body_3)
        strong_bodies = all(b > avg_body * 0.7 for b in bodies)

        # Three White Soldiers
        if (strong_bodies and
                c[p1] > o[p1] and c[p2] > o[p2] and c[i] > o[i] and  # 3 green
                c[p2] > c[p1] and c[i] > c[p2] and  # ascending closes
                o[p2] > o[p1] and o[i] > o[p2]):  # ascending opens
            patterns.append(Pattern(
                name="Three White Soldiers", type=PatternType.BULLISH,
                description="Strong bullish continuation",
                index=idx, reliability=Reliability.HIGH,
            ))

        # Three Black Crows
        if (strong_bodies and
                c[p1] < o[p1] and c[p2] < o[p2] and c[i] < o[i] and  # 3 red
                c[p2] < c[p1] and c[i] < c[p2] and  # descending closes
                o[p2] < o[p1] and o[i] < o[p2]):
            patterns.append(Pattern(
                name="Three Black Crows", type=PatternType.BEARISH,
                description="Strong bearish continuation",
                index=idx, reliability=Reliability.HIGH,
            ))

        return patterns
