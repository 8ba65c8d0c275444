from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from basket_tester.analytics.indicators import atr, ema, macd, rsi, sma, true_range


class TestMovingAverages:

    def test_sma_keeps_raw_values_during_warmup(self):
        out = sma([1, 2, 3, 4, 5], 3)
        assert out.tolist() == pytest.approx([1, 2, 2, 3, 4])

    def test_sma_shorter_than_period_is_unchanged(self):
        assert sma([4, 5], 3).tolist() == [4, 5]

    def test_ema_seeds_with_first_value(self):
        # k = 2 / (3 + 1) = 0.5
        assert ema([1, 2, 3], 3).tolist() == pytest.approx([1, 1.5, 2.25])

    def test_ema_empty(self):
        assert len(ema([], 5)) == 0

    def test_macd_of_constant_series_is_zero(self):
        line, signal = macd(np.full(60, 42.0))
        assert np.allclose(line, 0) and np.allclose(signal, 0)
        assert len(line) == len(signal) == 60


class TestRSI:

    def test_warmup_region_is_neutral(self):
        out = rsi(np.arange(1, 31, dtype=float))
        assert np.all(out[:15] == 50)

    def test_no_losses_gives_100(self):
        out = rsi(np.arange(1, 31, dtype=float))
        assert np.all(out[15:] == 100)

    def test_short_series_all_neutral(self):
        assert np.all(rsi([1, 2, 3, 2, 1], 14) == 50)

    def test_falling_series_goes_to_zero(self):
        out = rsi(np.arange(30, 0, -1, dtype=float))
        assert out[-1] == pytest.approx(0.0)

    def test_bounded(self):
        rng = np.random.default_rng(0)
        out = rsi(100 + rng.standard_normal(200).cumsum())
        assert np.all((out >= 0) & (out <= 100))


class TestATR:

    def _bars(self, n):
        return pd.DataFrame({"high": np.full(n, 11.0), "low": np.full(n, 9.0), "close": np.full(n, 10.0)})

    def test_true_range_uses_previous_close(self):
        tr = true_range([10, 15], [9, 12], [10, 13])
        # max(15-12, |15-10|, |12-10|) = 5
        assert tr.tolist() == [5]

    def test_first_value_at_period_then_wilder(self):
        out = atr(self._bars(20), 14)
        assert np.all(out[:14] == 0)
        assert out[14] == pytest.approx(2.0)
        assert np.allclose(out[15:], 2.0)

    def test_too_few_bars_all_zero(self):
        out = atr(self._bars(10), 14)
        assert len(out) == 10 and np.all(out == 0)
