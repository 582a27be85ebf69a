"""
Market Pulse — Indicator Engine Tests

SMA, EMA, RSI, MACD, Bollinger Bands, returns and volatility.
"""

import math
import sys

import pytest

sys.path.insert(0, "backend")


# ═══════════════════════════════════════════════
#  MOVING AVERAGES
# ═══════════════════════════════════════════════

class TestMovingAverages:
    """Test SMA / EMA alignment and warm-up handling."""

    def test_import(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        engine = IndicatorEngine()
        assert engine is not None

    def test_sma_values(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        engine = IndicatorEngine()
        closes = [float(i) for i in range(1, 21)]  # 1-20
        sma = engine.sma(closes, 5)
        assert len(sma) == 20
        assert all(math.isnan(v) for v in sma[:4])
        assert sma[4] == pytest.approx(3.0)  # (1+2+3+4+5)/5
        for i in range(4, 20):
            assert sma[i] == pytest.approx(sum(closes[i - 4:i + 1]) / 5)

    def test_sma_short_series_is_all_nan(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        engine = IndicatorEngine()
        sma = engine.sma([1.0, 2.0, 3.0], 5)
        assert len(sma) == 3
        assert all(math.isnan(v) for v in sma)

    def test_sma_empty_series(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        assert IndicatorEngine().sma([], 5) == []

    def test_sma_window_one_is_identity(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        closes = [3.0, 1.0, 4.0, 1.0, 5.0]
        assert IndicatorEngine().sma(closes, 1) == pytest.approx(closes)

    def test_sma_rejects_zero_window(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        with pytest.raises(ValueError, match="positive integer"):
            IndicatorEngine().sma([1.0, 2.0], 0)

    def test_ema_warm_up(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        engine = IndicatorEngine()
        closes = [float(i) for i in range(1, 21)]
        ema = engine.ema(closes, 5)
        assert len(ema) == 20
        assert math.isnan(ema[3])
        assert not math.isnan(ema[4])

    def test_ema_constant_series(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        ema = IndicatorEngine().ema([7.0] * 12, 4)
        assert ema[-1] == pytest.approx(7.0)


# ═══════════════════════════════════════════════
#  RSI
# ═══════════════════════════════════════════════

class TestRSI:
    """Test the Wilder RSI."""

    def test_rsi_warm_up(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        closes = [100 + math.sin(i * 0.4) * 5 for i in range(40)]
        rsi = IndicatorEngine().rsi(closes, 14)
        assert len(rsi) == 40
        assert all(math.isnan(v) for v in rsi[:14])
        assert not math.isnan(rsi[14])

    def test_rsi_bounded(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        closes = [100 + math.sin(i * 0.3) * 10 + (i % 7) for i in range(120)]
        rsi = IndicatorEngine().rsi(closes)
        defined = [v for v in rsi if not math.isnan(v)]
        assert defined
        assert all(0 <= v <= 100 for v in defined)

    def test_rsi_monotonic_increase_is_100(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        closes = [100 + i for i in range(20)]
        rsi = IndicatorEngine().rsi(closes, 14)
        assert rsi[-1] == 100.0

    def test_rsi_monotonic_decrease_is_0(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        closes = [100 - i for i in range(20)]
        rsi = IndicatorEngine().rsi(closes, 14)
        assert rsi[-1] == pytest.approx(0.0)

    def test_rsi_first_value(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        # Changes: +2, -1, +2, -1 → avg gain 1.0, avg loss 0.5 → RS 2 → RSI 66.67
        closes = [10.0, 12.0, 11.0, 13.0, 12.0]
        rsi = IndicatorEngine().rsi(closes, 4)
        assert rsi[4] == pytest.approx(100 - 100 / 3)

    def test_rsi_short_series(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        rsi = IndicatorEngine().rsi([1.0] * 14, 14)
        assert len(rsi) == 14
        assert all(math.isnan(v) for v in rsi)


# ═══════════════════════════════════════════════
#  MACD & BOLLINGER
# ═══════════════════════════════════════════════

class TestMACDAndBands:
    """Test MACD components and Bollinger Bands."""

    def _closes(self, n: int = 80):
        return [100 + math.sin(i * 0.25) * 8 + i * 0.1 for i in range(n)]

    def test_macd_lengths(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        closes = self._closes()
        result = IndicatorEngine().macd(closes)
        assert len(result.macd) == len(closes)
        assert len(result.signal) == len(closes)
        assert len(result.histogram) == len(closes)
        assert math.isnan(result.macd[0])
        assert not math.isnan(result.histogram[-1])

    def test_macd_histogram_is_line_minus_signal(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        result = IndicatorEngine().macd(self._closes())
        for line, sig, hist in zip(result.macd, result.signal, result.histogram):
            if not math.isnan(hist):
                assert hist == pytest.approx(line - sig)

    def test_macd_short_series(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        result = IndicatorEngine().macd([1.0] * 10)
        assert len(result.histogram) == 10
        assert all(math.isnan(v) for v in result.macd + result.signal + result.histogram)

    def test_bollinger_middle_is_sma(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        engine = IndicatorEngine()
        closes = self._closes(40)
        bands = engine.bollinger_bands(closes, window=20, num_std=2)
        sma = engine.sma(closes, 20)
        assert len(bands.middle) == 40
        assert all(math.isnan(v) for v in bands.upper[:19])
        for i in range(19, 40):
            assert bands.middle[i] == pytest.approx(sma[i])
            assert bands.upper[i] - bands.middle[i] == pytest.approx(bands.middle[i] - bands.lower[i])
            assert bands.upper[i] >= bands.lower[i]

    def test_bollinger_width_uses_population_std(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        closes = [1.0, 3.0, 1.0, 3.0]
        bands = IndicatorEngine().bollinger_bands(closes, window=4, num_std=2)
        # mean 2, population std 1
        assert bands.middle[-1] == pytest.approx(2.0)
        assert bands.upper[-1] == pytest.approx(4.0)
        assert bands.lower[-1] == pytest.approx(0.0)

    def test_bollinger_short_series(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        bands = IndicatorEngine().bollinger_bands([1.0, 2.0])
        assert len(bands.upper) == 2
        assert all(math.isnan(v) for v in bands.upper + bands.middle + bands.lower)

    def test_settings_drive_defaults(self):
        from pulse.config import Settings
        from pulse.engines.indicator_engine import IndicatorEngine
        engine = IndicatorEngine(Settings(rsi_period=5))
        rsi = engine.rsi([float(i % 3) for i in range(10)])
        assert math.isnan(rsi[4])
        assert not math.isnan(rsi[5])


# ═══════════════════════════════════════════════
#  RETURNS & VOLATILITY
# ═══════════════════════════════════════════════

class TestReturns:

    def test_returns(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        assert IndicatorEngine.returns([100.0, 110.0, 99.0]) == pytest.approx([0.10, -0.10])

    def test_returns_zero_previous_close(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        assert IndicatorEngine.returns([0.0, 5.0]) == [0.0]

    def test_volatility(self):
        from pulse.engines.indicator_engine import IndicatorEngine
        engine = IndicatorEngine()
        assert engine.volatility([100.0]) == 0.0
        assert engine.volatility([100.0, 100.0, 100.0]) == 0.0
        # returns +10%, -10% → population std 10%
        assert engine.volatility([100.0, 110.0, 99.0]) == pytest.approx(10.0)
