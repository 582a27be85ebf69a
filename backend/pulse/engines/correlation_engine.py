"""
Market Pulse — Correlation Engine

Pairwise Pearson correlation between asset return series and the symmetric
correlation matrix built from it.
"""

from __future__ import annotations

import math
from typing import Mapping, Optional, Sequence

import numpy as np
import structlog

from pulse.config import Settings, get_settings
from pulse.engines.indicator_engine import IndicatorEngine
from pulse.models import OHLCV, CorrelationMatrix
from pulse.observability import traced
from pulse.utils.formatters import format_ticker

log = structlog.get_logger(__name__)


class CorrelationEngine:
    """Cross-asset return correlation."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def correlation(self, a: Sequence[float], b: Sequence[float]) -> float:
        """Pearson correlation over the overlapping tail of two series.

        Returns 0.0 when fewer than `correlation_min_points` points overlap
        or when either series has zero variance.
        """
        n = min(len(a), len(b))
        if n < self.settings.correlation_min_points:
            return 0.0

        x = np.asarray(a[len(a) - n:], dtype=float)
        y = np.asarray(b[len(b) - n:], dtype=float)
        dx = x - x.mean()
        dy = y - y.mean()

        denominator = math.sqrt(float(np.sum(dx * dx)) * float(np.sum(dy * dy)))
        if denominator == 0:
            return 0.0
        corr = float(np.sum(dx * dy)) / denominator
        if not math.isfinite(corr):
            # NaN / inf in either series: no usable reading
            return 0.0
        # Rounding can push |r| a hair past 1 for identical series
        return max(-1.0, min(1.0, corr))

    @traced("correlation_engine.correlation_matrix", tags=["correlation"])
    def correlation_matrix(self, returns_by_symbol: Mapping[str, Sequence[float]]) -> CorrelationMatrix:
        """Full matrix in input order; diagonal fixed at 1, pairs mirrored.

        Keys that normalise to the same ticker ("btc", "BTC") collapse to
        the first occurrence.
        """
        symbols: list[str] = []
        series: list[Sequence[float]] = []
        for raw, values in returns_by_symbol.items():
            symbol = format_ticker(raw)
            if symbol in symbols:
                log.warning("correlation.duplicate_symbol", symbol=symbol, key=raw)
                continue
            symbols.append(symbol)
            series.append(values)
        size = len(symbols)

        values = [[1.0 if i == j else 0.0 for j in range(size)] for i in range(size)]
        for i in range(size):
            for j in range(i + 1, size):
                corr = self.correlation(series[i], series[j])
                values[i][j] = corr
                values[j][i] = corr

        log.debug("correlation.matrix_built", symbols=symbols)
        return CorrelationMatrix(symbols=symbols, values=values)

    def correlation_matrix_from_bars(self, bars_by_symbol: Mapping[str, Sequence[OHLCV]]) -> CorrelationMatrix:
        """Derive close-to-close returns per symbol, then build the matrix.

        Symbols with fewer than two bars have no returns and are left out.
        """
        returns: dict[str, list[float]] = {}
        for symbol, bars in bars_by_symbol.items():
            if len(bars) < 2:
                log.debug("correlation.symbol_skipped", symbol=symbol, bars=len(bars))
                continue
            returns[symbol] = IndicatorEngine.returns(IndicatorEngine.closes_from_bars(bars))
        return self.correlation_matrix(returns)
