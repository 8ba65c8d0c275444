"""Shared fixtures for all tests."""
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from basket_tester.data.series import AssetSeries


def series_from_closes(ticker, closes, start="2024-01-01", spread=0.0):
    """AssetSeries on consecutive business days; high/low sit `spread` around close."""
    closes = np.asarray(closes, dtype=float)
    dates = pd.bdate_range(start, periods=len(closes))
    df = pd.DataFrame({
        "open": closes,
        "high": closes * (1 + spread),
        "low": closes * (1 - spread),
        "close": closes,
        "volume": 1000,
    }, index=dates)
    return AssetSeries.from_frame(ticker, df)


@pytest.fixture
def make_series():
    return series_from_closes


@pytest.fixture
def random_walk():
    """Seeded geometric random walk with OHLC, 300 sessions."""
    def _make(ticker="RW", n=300, drift=0.0005, vol=0.015, seed=3, start="2023-01-02"):
        rng = np.random.default_rng(seed)
        closes = 100 * np.exp(np.cumsum(drift + vol * rng.standard_normal(n)))
        return series_from_closes(ticker, closes, start=start, spread=0.01)
    return _make


@pytest.fixture
def flat_pair(make_series):
    """TICKER_A flat at 500, TICKER_B flat at 200, 60 overlapping sessions."""
    return {
        "TICKER_A": make_series("TICKER_A", np.full(60, 500.0)),
        "TICKER_B": make_series("TICKER_B", np.full(60, 200.0)),
    }
