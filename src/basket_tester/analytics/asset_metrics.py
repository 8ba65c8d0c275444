import numpy as np

TRADING_DAYS = 252

RETURN_WINDOWS = {
    "1y": 252,
    "2y": 504,
    "3y": 756,
    "5y": 1260,
    "10y": 2520,
    "15y": 3780,
}

def window_cagr(closes, days: int) -> float:
    """Annualised growth over the trailing `days` trading days.

    The start price is the close `days` sessions before the latest one, so the
    series needs more than `days` points. Returns 0 when history is too short
    or the start price is not positive.
    """
    x = np.asarray(closes, dtype=float)
    if days <= 0 or len(x) <= days:
        return 0.0
    start = x[-(days + 1)]
    end = x[-1]
    if not start > 0 or not end >= 0:
        return 0.0
    years = days / TRADING_DAYS
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        g = (end / start) ** (1.0 / years) - 1.0
    return float(g) if np.isfinite(g) else 0.0

def asset_returns(closes):
    return {label: window_cagr(closes, days) for label, days in RETURN_WINDOWS.items()}

def annualized_volatility(closes, window: int = TRADING_DAYS) -> float:
    x = np.asarray(closes, dtype=float)[-(window + 1):]
    if len(x) < 3:
        return 0.0
    prev, cur = x[:-1], x[1:]
    ok = (prev > 0) & np.isfinite(prev) & np.isfinite(cur)
    if ok.sum() < 2:
        return 0.0
    r = cur[ok] / prev[ok] - 1.0
    return float(r.std() * np.sqrt(TRADING_DAYS))
