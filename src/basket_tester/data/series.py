from dataclasses import dataclass

import numpy as np
import pandas as pd

from ..analytics.asset_metrics import annualized_volatility, asset_returns

OHLC_COLUMNS = ["open", "high", "low", "close"]

def to_ohlc_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Normalise a raw daily price frame to open/high/low/close/volume.

    Column names are matched case-insensitively. A frame with only a close
    column gets open/high/low filled from close. Duplicate dates keep the
    last row; the index is sorted ascending and tz-naive.
    """
    if df is None or len(df) == 0:
        return pd.DataFrame(columns=OHLC_COLUMNS + ["volume"], index=pd.DatetimeIndex([], name="date"))

    lower = {str(c).strip().lower(): c for c in df.columns}
    if "close" not in lower:
        raise ValueError(f"Price frame has no close column. Columns={list(df.columns)}")
    out = pd.DataFrame(index=pd.to_datetime(df.index))
    for col in OHLC_COLUMNS:
        src = lower.get(col, lower["close"])
        out[col] = pd.to_numeric(df[src].to_numpy(), errors="coerce")
    if "volume" in lower:
        vol = pd.to_numeric(df[lower["volume"]].to_numpy(), errors="coerce")
        out["volume"] = np.nan_to_num(vol, nan=0.0).astype("int64")
    else:
        out["volume"] = 0

    if out.index.tz is not None:
        out.index = out.index.tz_localize(None)
    out.index = out.index.normalize()
    out.index.name = "date"
    out = out.dropna(subset=["close"])
    out = out[~out.index.duplicated(keep="last")].sort_index()
    return out

@dataclass(frozen=True)
class AssetSeries:
    ticker: str
    prices: pd.DataFrame   # open/high/low/close/volume, ascending DatetimeIndex

    @classmethod
    def from_frame(cls, ticker: str, df: pd.DataFrame) -> "AssetSeries":
        return cls(ticker, to_ohlc_frame(df))

    def __len__(self):
        return len(self.prices)

    @property
    def closes(self) -> np.ndarray:
        return self.prices["close"].to_numpy(dtype=float)

    @property
    def start(self):
        return self.prices.index[0] if len(self.prices) else None

    @property
    def end(self):
        return self.prices.index[-1] if len(self.prices) else None

    @property
    def volatility(self) -> float:
        return annualized_volatility(self.closes)

    @property
    def returns(self):
        return asset_returns(self.closes)

    def close_on(self, date) -> float:
        try:
            return float(self.prices.at[pd.Timestamp(date), "close"])
        except KeyError:
            return 0.0
