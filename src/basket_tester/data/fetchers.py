import logging

import pandas as pd
import yfinance as yf

from .series import AssetSeries

logger = logging.getLogger(__name__)

FIELDS = ("Open", "High", "Low", "Close", "Volume")

def extract_ohlc_frames(data, tickers):
    """Split a yfinance download into one OHLCV frame per ticker."""
    out = {}
    if isinstance(data, pd.DataFrame) and isinstance(data.columns, pd.MultiIndex):
        lvl0 = set(data.columns.get_level_values(0))
        for t in tickers:
            if "Close" in lvl0:
                # field-first layout (group_by="column")
                cols = {f: (f, t) for f in FIELDS if (f, t) in data.columns}
            else:
                # ticker-first layout
                cols = {f: (t, f) for f in FIELDS if (t, f) in data.columns}
            if "Close" in cols:
                out[t] = pd.DataFrame({f.lower(): data[c] for f, c in cols.items()})
    elif isinstance(data, pd.DataFrame) and "Close" in data.columns and len(tickers) == 1:
        out[tickers[0]] = data[[f for f in FIELDS if f in data.columns]].rename(columns=str.lower)
    if not out:
        raise RuntimeError(f"Could not find OHLC columns. Columns={getattr(data, 'columns', None)}")
    return {t: df.dropna(subset=["close"]) for t, df in out.items()}

def fetch_daily_ohlc(tickers, cache, period: str = "max"):
    """Daily auto-adjusted OHLCV from Yahoo, read through `cache`.

    Tickers already held by the cache are not downloaded again. Returns
    {ticker: AssetSeries} for every ticker that has data.
    """
    tickers = list(dict.fromkeys(tickers))
    missing = [t for t in tickers if t not in cache]
    if missing:
        logger.info("Downloading from Yahoo Finance: %s", missing)
        data = yf.download(
            missing,
            auto_adjust=True,
            progress=False,
            interval="1d",
            group_by="column",
            period=period,
        )
        frames = extract_ohlc_frames(data, missing)
        for t, df in frames.items():
            cache.put(AssetSeries.from_frame(t, df))
        absent = [t for t in missing if t not in frames]
        if absent:
            logger.warning("No price data returned for %s", absent)
    return cache.snapshot(tickers)
