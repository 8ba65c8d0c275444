from dataclasses import dataclass
from typing import Optional

import numpy as np

MIN_VALID_RETURNS = 10

@dataclass(frozen=True)
class GBMParams:
    mu: float        # mean daily log return
    sigma: float     # sample stdev of daily log returns
    n: int

    @property
    def variance(self) -> float:
        return self.sigma ** 2

    @property
    def drift(self) -> float:
        return self.mu - 0.5 * self.variance

def simple_returns(closes) -> np.ndarray:
    x = np.asarray(closes, dtype=float)
    if len(x) < 2:
        return np.zeros(0)
    prev = x[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        r = (x[1:] - prev) / prev
    return r[np.isfinite(r)]

def estimate(closes, min_returns: int = MIN_VALID_RETURNS) -> Optional[GBMParams]:
    """Daily GBM parameters from a close series.

    Returns <= -1 are data artifacts and are dropped before taking logs.
    None when fewer than `min_returns` usable returns remain.
    """
    r = simple_returns(closes)
    r = r[r > -1]
    if len(r) < max(min_returns, 2):
        return None
    logr = np.log1p(r)
    return GBMParams(mu=float(logr.mean()), sigma=float(logr.std(ddof=1)), n=len(logr))
