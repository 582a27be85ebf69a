"""
Market Pulse — Indicator Engine

Pure windowed-statistics functions over a close-price series: SMA, EMA,
Wilder RSI, MACD and Bollinger Bands, plus return / volatility helpers.

Every series function returns a list aligned 1:1 with its input. Positions
before the warm-up threshold hold NaN; they are never dropped. Input shorter
than the minimum window yields an all-NaN list instead of an error.

Uses the `ta` library for the rolling/exponential indicators on pandas Series.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from typing import Optional, Sequence

import numpy as np
import pandas as pd
import structlog
from ta.trend import MACD, EMAIndicator, SMAIndicator
from ta.volatility import BollingerBands

from pulse.config import Settings, get_settings
from pulse.models import OHLCV
from pulse.utils.validators import validate_non_negative, validate_window

log = structlog.get_logger(__name__)

NAN = float("nan")


@dataclass
class MACDResult:
    """MACD line, signal line and histogram, each aligned with the input."""
    macd: list[float]
    signal: list[float]
    histogram: list[float]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BollingerResult:
    """Upper / middle / lower Bollinger bands, each aligned with the input."""
    upper: list[float]
    middle: list[float]
    lower: list[float]

    def to_dict(self) -> dict:
        return asdict(self)


def _undefined(length: int) -> list[float]:
    return [NAN] * length


class IndicatorEngine:
    """Stateless indicator calculator.

    Usage:
        engine = IndicatorEngine()
        rsi = engine.rsi(engine.closes_from_bars(bars))
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    # ──────────────────────────────────────────
    # Moving Averages
    # ──────────────────────────────────────────

    def sma(self, series: Sequence[float], window: int) -> list[float]:
        """Simple Moving Average: mean of the trailing `window` values.

        NaN for indices < window - 1.
        """
        validate_window(window)
        if len(series) < window:
            log.debug("indicator.insufficient_data", indicator="sma", length=len(series), window=window)
            return _undefined(len(series))
        close = pd.Series(series, dtype=float)
        return SMAIndicator(close, window=window).sma_indicator().tolist()

    def ema(self, series: Sequence[float], window: int) -> list[float]:
        """Exponential Moving Average (span = window, recursive form).

        NaN for indices < window - 1.
        """
        validate_window(window)
        if len(series) < window:
            log.debug("indicator.insufficient_data", indicator="ema", length=len(series), window=window)
            return _undefined(len(series))
        close = pd.Series(series, dtype=float)
        return EMAIndicator(close, window=window).ema_indicator().tolist()

    # ──────────────────────────────────────────
    # Oscillators
    # ──────────────────────────────────────────

    def rsi(self, series: Sequence[float], period: Optional[int] = None) -> list[float]:
        """Wilder Relative Strength Index.

        The first average gain/loss is the simple mean of the first `period`
        price changes; later averages use Wilder smoothing
        ``avg = (avg * (period - 1) + x) / period``. A zero average loss maps
        to 100. NaN for indices < period.
        """
        period = validate_window(self.settings.rsi_period if period is None else period, "period")
        result = _undefined(len(series))
        if len(series) < period + 1:
            log.debug("indicator.insufficient_data", indicator="rsi", length=len(series), period=period)
            return result

        diffs = np.diff(np.asarray(series, dtype=float))
        gains = np.where(diffs > 0, diffs, 0.0)
        losses = np.where(diffs < 0, -diffs, 0.0)

        avg_gain = float(gains[:period].mean())
        avg_loss = float(losses[:period].mean())
        result[period] = self._rsi_value(avg_gain, avg_loss)

        for i in range(period, len(diffs)):
            avg_gain = (avg_gain * (period - 1) + gains[i]) / period
            avg_loss = (avg_loss * (period - 1) + losses[i]) / period
            result[i + 1] = self._rsi_value(avg_gain, avg_loss)

        return result

    def macd(
        self,
        series: Sequence[float],
        fast: Optional[int] = None,
        slow: Optional[int] = None,
        signal: Optional[int] = None,
    ) -> MACDResult:
        """MACD line (fast EMA − slow EMA), its signal EMA, and the histogram."""
        fast = validate_window(self.settings.macd_fast if fast is None else fast, "fast")
        slow = validate_window(self.settings.macd_slow if slow is None else slow, "slow")
        signal = validate_window(self.settings.macd_signal if signal is None else signal, "signal")

        n = len(series)
        if n < slow:
            log.debug("indicator.insufficient_data", indicator="macd", length=n, slow=slow)
            return MACDResult(macd=_undefined(n), signal=_undefined(n), histogram=_undefined(n))

        close = pd.Series(series, dtype=float)
        macd_obj = MACD(close, window_slow=slow, window_fast=fast, window_sign=signal)
        return MACDResult(
            macd=macd_obj.macd().tolist(),
            signal=macd_obj.macd_signal().tolist(),
            histogram=macd_obj.macd_diff().tolist(),
        )

    # ──────────────────────────────────────────
    # Volatility Bands
    # ──────────────────────────────────────────

    def bollinger_bands(
        self,
        series: Sequence[float],
        window: Optional[int] = None,
        num_std: Optional[float] = None,
    ) -> BollingerResult:
        """SMA midline ± `num_std` population standard deviations."""
        window = validate_window(self.settings.bollinger_window if window is None else window)
        num_std = validate_non_negative(
            self.settings.bollinger_std if num_std is None else num_std, "num_std"
        )

        n = len(series)
        if n < window:
            log.debug("indicator.insufficient_data", indicator="bollinger", length=n, window=window)
            return BollingerResult(upper=_undefined(n), middle=_undefined(n), lower=_undefined(n))

        close = pd.Series(series, dtype=float)
        bb = BollingerBands(close, window=window, window_dev=num_std)
        return BollingerResult(
            upper=bb.bollinger_hband().tolist(),
            middle=bb.bollinger_mavg().tolist(),
            lower=bb.bollinger_lband().tolist(),
        )

    # ──────────────────────────────────────────
    # Returns & Volatility
    # ──────────────────────────────────────────

    @staticmethod
    def returns(closes: Sequence[float]) -> list[float]:
        """Simple period returns. One shorter than the input."""
        out = []
        for i in range(1, len(closes)):
            prev = closes[i - 1]
            out.append((closes[i] - prev) / prev if prev != 0 else 0.0)
        return out

    def volatility(self, closes: Sequence[float]) -> float:
        """Population standard deviation of returns, as a percentage."""
        if len(closes) < 2:
            return 0.0
        return float(np.std(self.returns(closes))) * 100

    # ──────────────────────────────────────────
    # Helpers
    # ──────────────────────────────────────────

    @staticmethod
    def closes_from_bars(bars: Sequence[OHLCV]) -> list[float]:
        return [b.close for b in bars]

    @staticmethod
    def last_value(values: Sequence[float]) -> float:
        """Last entry of an indicator series (NaN if undefined or empty)."""
        if not values:
            return NAN
        value = values[-1]
        return NAN if value is None or math.isnan(value) else float(value)

    @staticmethod
    def _rsi_value(avg_gain: float, avg_loss: float) -> float:
        if avg_loss == 0:
            return 100.0
        rs = avg_gain / avg_loss
        return 100 - 100 / (1 + rs)
