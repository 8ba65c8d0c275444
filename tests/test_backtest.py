from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from basket_tester.engine.backtest import build_history, common_dates, truncation_warnings
from basket_tester.engine.errors import InsufficientHistoryError


class TestCommonWindow:

    def test_flat_basket_replays_every_common_date(self, flat_pair):
        bt = build_history({"TICKER_A": 120, "TICKER_B": 200}, flat_pair)
        assert len(bt.history) == 60
        assert np.allclose(bt.history["close"], 100_000)
        assert np.all(bt.returns == 0)
        assert np.all(bt.drawdown == 0)
        assert bt.warnings == []

    def test_late_starter_truncates_and_warns(self, make_series):
        long = make_series("LONG", np.linspace(100, 150, 300), start="2022-06-01")
        late_start = long.prices.index[-80]
        short = make_series("SHORT", np.full(80, 10.0), start=late_start)
        bt = build_history({"LONG": 1, "SHORT": 1}, {"LONG": long, "SHORT": short})

        assert len(bt.history) == 80
        assert bt.start == late_start
        assert bt.warnings == [
            f"Backtest period truncated to {late_start.year} due to limited history for SHORT."
        ]

    def test_same_start_no_warning(self, flat_pair):
        assert truncation_warnings(flat_pair) == []

    def test_bounded_by_today(self, flat_pair):
        cutoff = flat_pair["TICKER_A"].prices.index[29]
        bt = build_history({"TICKER_A": 1, "TICKER_B": 1}, flat_pair, today=cutoff)
        assert len(bt.history) == 30
        assert bt.end == cutoff

    def test_gap_in_one_asset_is_skipped(self, make_series):
        a = make_series("A", np.full(40, 10.0))
        b = make_series("B", np.full(40, 20.0))
        b = type(b)("B", b.prices.drop(b.prices.index[5]))
        assert len(common_dates({"A": a, "B": b})) == 39

    def test_insufficient_overlap_raises(self, make_series):
        a = make_series("A", np.full(30, 10.0), start="2024-01-01")
        b = make_series("B", np.full(30, 10.0), start=a.prices.index[20])
        with pytest.raises(InsufficientHistoryError) as exc:
            build_history({"A": 1, "B": 1}, {"A": a, "B": b})
        assert exc.value.overlap == 10
        assert exc.value.required == 20

    def test_disjoint_histories_raise(self, make_series):
        a = make_series("A", np.full(30, 10.0), start="2020-01-01")
        b = make_series("B", np.full(30, 10.0), start="2024-01-01")
        with pytest.raises(InsufficientHistoryError):
            build_history({"A": 1, "B": 1}, {"A": a, "B": b})


class TestPortfolioSeries:

    def test_ohlc_aggregated_per_field(self, make_series):
        a = make_series("A", np.full(25, 100.0), spread=0.1)
        b = make_series("B", np.full(25, 50.0), spread=0.1)
        bt = build_history({"A": 2, "B": 4}, {"A": a, "B": b})
        row = bt.history.iloc[0]
        assert row["close"] == pytest.approx(400)
        assert row["high"] == pytest.approx(440)
        assert row["low"] == pytest.approx(360)
        assert row["open"] == pytest.approx(400)
        assert row["volume"] == 0

    def test_returns_and_drawdown(self, make_series):
        closes = np.r_[[100, 120, 60, 90], np.full(20, 90.0)]
        bt = build_history({"X": 1}, {"X": make_series("X", closes)})
        assert len(bt.returns) == len(bt.history) - 1
        assert bt.returns.iloc[0] == pytest.approx(0.2)
        assert bt.returns.iloc[1] == pytest.approx(-0.5)
        assert np.all(bt.drawdown <= 0)
        assert bt.drawdown.min() == pytest.approx(-0.5)
        assert bt.drawdown.iloc[3] == pytest.approx(-0.25)

    def test_per_asset_comparison_series(self, make_series):
        a = make_series("A", np.linspace(10, 20, 30))
        b = make_series("B", np.linspace(20, 10, 30))
        bt = build_history({"A": 3, "B": 1}, {"A": a, "B": b})
        assert list(bt.asset_values.columns) == ["A", "B"]
        assert bt.asset_values["A"].iloc[-1] == pytest.approx(60)
        assert bt.asset_returns["A"] == pytest.approx(1.0)
        assert bt.asset_returns["B"] == pytest.approx(-0.5)
        total = bt.asset_values.sum(axis=1)
        assert np.allclose(total.to_numpy(), bt.history["close"].to_numpy())

    def test_zero_shares_asset_contributes_nothing(self, flat_pair):
        bt = build_history({"TICKER_A": 10}, flat_pair)
        assert np.allclose(bt.history["close"], 5000)
        assert bt.asset_returns["TICKER_B"] == 0.0
        assert isinstance(bt.history.index, pd.DatetimeIndex)
