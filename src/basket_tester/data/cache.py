import hashlib
import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from .series import AssetSeries

logger = logging.getLogger(__name__)

def key_path(cache_dir: Path, prefix: str, key: str, suffix: str = ".csv") -> Path:
    h = hashlib.sha256(key.encode()).hexdigest()[:16]
    return cache_dir / f"{prefix}_{h}{suffix}"

class PriceCache:
    """Ticker -> AssetSeries store handed to the data layer explicitly.

    Always keeps series in memory; with `cache_dir` set, series are also
    written to CSV so later processes can skip the download.
    """

    def __init__(self, cache_dir=None):
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None
        self._mem: Dict[str, AssetSeries] = {}

    def _path(self, ticker: str) -> Path:
        return key_path(self.cache_dir, "ohlc", ticker)

    def get(self, ticker: str) -> Optional[AssetSeries]:
        if ticker in self._mem:
            return self._mem[ticker]
        if self.cache_dir is None:
            return None
        path = self._path(ticker)
        if not path.exists():
            return None
        series = AssetSeries.from_frame(ticker, pd.read_csv(path, index_col=0, parse_dates=True))
        self._mem[ticker] = series
        logger.debug("Loaded %s from %s", ticker, path)
        return series

    def put(self, series: AssetSeries):
        self._mem[series.ticker] = series
        if self.cache_dir is not None:
            path = self._path(series.ticker)
            path.parent.mkdir(parents=True, exist_ok=True)
            series.prices.to_csv(path)

    def __contains__(self, ticker):
        return self.get(ticker) is not None

    def snapshot(self, tickers=None) -> Dict[str, AssetSeries]:
        """Plain mapping for the engine; unknown tickers are left out."""
        tickers = list(self._mem) if tickers is None else tickers
        out = {}
        for t in tickers:
            s = self.get(t)
            if s is not None:
                out[t] = s
        return out

    def clear(self):
        self._mem.clear()
