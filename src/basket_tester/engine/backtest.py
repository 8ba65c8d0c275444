import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping

import numpy as np
import pandas as pd

from ..analytics.metrics import drawdown_series
from ..data.series import AssetSeries
from .errors import InsufficientHistoryError

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class BacktestHistory:
    history: pd.DataFrame         # portfolio open/high/low/close/volume per common date
    returns: pd.Series            # daily simple returns, len(history) - 1
    drawdown: pd.Series           # (value - running peak) / running peak, <= 0
    asset_values: pd.DataFrame    # shares * close per ticker
    asset_returns: Dict[str, float]
    warnings: List[str]

    @property
    def dates(self) -> pd.DatetimeIndex:
        return self.history.index

    @property
    def start(self) -> pd.Timestamp:
        return self.history.index[0]

    @property
    def end(self) -> pd.Timestamp:
        return self.history.index[-1]

def truncation_warnings(series: Mapping[str, AssetSeries]) -> List[str]:
    """Name the assets whose late start pushes the common window forward."""
    starts = {t: s.start for t, s in series.items() if len(s)}
    if len(starts) < 2:
        return []
    latest = max(starts.values())
    if not any(d < latest for d in starts.values()):
        return []
    return [
        f"Backtest period truncated to {latest.year} due to limited history for {t}."
        for t, d in starts.items() if d == latest
    ]

def common_dates(series: Mapping[str, AssetSeries], today=None) -> pd.DatetimeIndex:
    idx = None
    for s in series.values():
        idx = s.prices.index if idx is None else idx.intersection(s.prices.index)
    if idx is None:
        return pd.DatetimeIndex([])
    if today is not None:
        idx = idx[idx <= pd.Timestamp(today)]
    return idx.sort_values()

def backtest_window(series: Mapping[str, AssetSeries], today=None, min_overlap: int = 20) -> pd.DatetimeIndex:
    dates = common_dates(series, today)
    if len(dates) < min_overlap:
        starts = [s.start for s in series.values() if len(s)]
        raise InsufficientHistoryError(len(dates), min_overlap, max(starts) if starts else None)
    return dates

def build_history(shares: Mapping[str, int], series: Mapping[str, AssetSeries],
                  today=None, min_overlap: int = 20) -> BacktestHistory:
    """Replay fixed share counts over the dates every asset has a price for.

    shares: ticker -> whole shares held for the whole window
    series: ticker -> AssetSeries, one per active asset
    Raises InsufficientHistoryError when fewer than `min_overlap` dates overlap.
    """
    warnings = truncation_warnings(series)
    dates = backtest_window(series, today, min_overlap)
    logger.debug("Backtest window %s..%s (%d days)", dates[0].date(), dates[-1].date(), len(dates))

    tickers = list(series)
    qty = np.array([float(shares.get(t, 0)) for t in tickers])
    fields = {}
    for col in ("open", "high", "low", "close"):
        px = pd.concat([series[t].prices[col].reindex(dates) for t in tickers], axis=1)
        px.columns = tickers
        fields[col] = px

    asset_values = fields["close"] * qty
    history = pd.DataFrame({col: (fields[col] * qty).sum(axis=1) for col in fields}, index=dates)
    history["volume"] = 0
    history.index.name = "date"

    close = history["close"].to_numpy()
    prev = close[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        rets = np.where(prev > 0, (close[1:] - prev) / np.where(prev > 0, prev, 1.0), 0.0)
    returns = pd.Series(rets, index=dates[1:], name="return")
    drawdown = pd.Series(drawdown_series(close), index=dates, name="drawdown")

    asset_returns = {}
    for t in tickers:
        v = asset_values[t].to_numpy()
        asset_returns[t] = float((v[-1] - v[0]) / v[0]) if v[0] > 0 else 0.0

    return BacktestHistory(history, returns, drawdown, asset_values, asset_returns, warnings)
