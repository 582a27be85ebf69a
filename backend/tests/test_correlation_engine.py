"""
Market Pulse — Correlation Engine Tests
"""

import math
import sys

import pytest

sys.path.insert(0, "backend")


class TestCorrelation:
    """Test pairwise Pearson correlation."""

    def test_self_correlation_is_one(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        a = [0.01, -0.02, 0.015, 0.003, -0.007, 0.02]
        assert CorrelationEngine().correlation(a, a) == pytest.approx(1.0)

    def test_symmetry(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        engine = CorrelationEngine()
        a = [0.01, -0.02, 0.015, 0.003, -0.007, 0.02, 0.0]
        b = [0.02, -0.01, 0.005, 0.004, -0.001, 0.01]
        assert engine.correlation(a, b) == engine.correlation(b, a)

    def test_perfect_negative(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        a = [1.0, 2.0, 3.0, 4.0, 5.0]
        b = [-2.0, -4.0, -6.0, -8.0, -10.0]
        assert CorrelationEngine().correlation(a, b) == pytest.approx(-1.0)

    def test_fewer_than_five_points(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        engine = CorrelationEngine()
        assert engine.correlation([1.0, 2.0, 3.0, 4.0], [1.0, 2.0, 3.0, 4.0]) == 0
        assert engine.correlation([1.0] * 10, [1.0, 2.0]) == 0
        assert engine.correlation([], []) == 0

    def test_constant_series_returns_zero(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        result = CorrelationEngine().correlation([0.5] * 6, [0.1, 0.2, 0.3, 0.1, 0.2, 0.3])
        assert result == 0.0
        assert not math.isnan(result)

    def test_unequal_lengths_use_tail(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        engine = CorrelationEngine()
        tail = [0.01, -0.02, 0.03, -0.01, 0.02]
        a = [9.0, -9.0, 9.0] + tail
        assert engine.correlation(a, tail) == pytest.approx(1.0)

    def test_known_value(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        a = [1.0, 2.0, 3.0, 4.0, 5.0]
        b = [2.0, 1.0, 4.0, 3.0, 5.0]
        # cov 8, var 10 and 10
        assert CorrelationEngine().correlation(a, b) == pytest.approx(0.8)

    def test_nan_input_returns_zero(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        a = [0.01, 0.02, float("nan"), -0.01, 0.03, 0.0]
        b = [-0.02, 0.01, 0.03, 0.02, -0.01, 0.01]
        engine = CorrelationEngine()
        assert engine.correlation(a, b) == 0.0
        assert engine.correlation(b, a) == 0.0


class TestCorrelationMatrix:
    """Test matrix construction."""

    def _returns(self):
        return {
            "btc": [0.01, -0.02, 0.015, 0.003, -0.007, 0.02],
            "eth": [0.012, -0.025, 0.02, 0.001, -0.01, 0.03],
            "sol": [-0.01, 0.02, -0.015, 0.0, 0.01, -0.02],
        }

    def test_shape_and_diagonal(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        matrix = CorrelationEngine().correlation_matrix(self._returns())
        assert matrix.symbols == ["BTC", "ETH", "SOL"]
        assert len(matrix.values) == 3
        assert all(len(row) == 3 for row in matrix.values)
        assert all(matrix.values[i][i] == 1.0 for i in range(3))

    def test_symmetric_and_bounded(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        matrix = CorrelationEngine().correlation_matrix(self._returns())
        for i in range(3):
            for j in range(3):
                assert matrix.values[i][j] == matrix.values[j][i]
                assert -1.0 <= matrix.values[i][j] <= 1.0
        assert matrix.get("BTC", "ETH") > 0.9
        assert matrix.get("BTC", "SOL") < -0.9

    def test_diagonal_is_one_even_for_short_series(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        matrix = CorrelationEngine().correlation_matrix({"A": [0.1], "B": [0.2]})
        assert matrix.values == [[1.0, 0.0], [0.0, 1.0]]

    def test_empty(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        matrix = CorrelationEngine().correlation_matrix({})
        assert matrix.symbols == []
        assert matrix.values == []

    def test_from_bars(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        from pulse.models import OHLCV

        def bars(closes):
            return [
                OHLCV(time=i * 86400, open=c, high=c, low=c, close=c, volume=1.0)
                for i, c in enumerate(closes)
            ]

        closes = [100.0, 102.0, 101.0, 104.0, 103.0, 107.0, 106.0]
        matrix = CorrelationEngine().correlation_matrix_from_bars({
            "BTC": bars(closes),
            "WBTC": bars([c * 2 for c in closes]),
            "NEW": bars([1.0]),
        })
        assert matrix.symbols == ["BTC", "WBTC"]
        assert matrix.get("BTC", "WBTC") == pytest.approx(1.0)

    def test_from_bars_with_nan_close(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        from pulse.models import OHLCV

        def bars(closes):
            return [
                OHLCV(time=i * 86400, open=c, high=c, low=c, close=c, volume=1.0)
                for i, c in enumerate(closes)
            ]

        closes = [100.0, 102.0, 101.0, 104.0, 103.0, 107.0, 106.0]
        gappy = list(closes)
        gappy[3] = float("nan")
        matrix = CorrelationEngine().correlation_matrix_from_bars({
            "BTC": bars(closes),
            "ETH": bars(gappy),
        })
        assert matrix.values == [[1.0, 0.0], [0.0, 1.0]]

    def test_duplicate_normalised_symbols_collapse(self):
        from pulse.engines.correlation_engine import CorrelationEngine
        returns = self._returns()
        returns["BTC"] = [0.5, -0.5, 0.5, -0.5, 0.5, -0.5]
        matrix = CorrelationEngine().correlation_matrix(returns)
        assert matrix.symbols == ["BTC", "ETH", "SOL"]
        assert len(matrix.values) == 3
        # First occurrence ("btc") wins
        assert matrix.get("BTC", "ETH") > 0.9
