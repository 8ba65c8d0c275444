import numpy as np
import pandas as pd

from .asset_metrics import TRADING_DAYS, window_cagr
from ..dates import years_between

RISK_FREE_RATE = 0.06
MIN_CAGR_YEARS = 0.1
GROWTH_SCORE_CAGR = 0.30

def _finite(x) -> float:
    x = float(x)
    return x if np.isfinite(x) else 0.0

def _ratio(num, den) -> float:
    if not np.isfinite(den) or den == 0:
        return 0.0
    return _finite(num / den)

def total_return(values) -> float:
    v = np.asarray(values, dtype=float)
    if len(v) == 0 or not v[0] > 0:
        return 0.0
    return _finite((v[-1] - v[0]) / v[0])

def cagr(values, years: float) -> float:
    """Full-period CAGR; short spans (<= 0.1y) report the plain total return."""
    v = np.asarray(values, dtype=float)
    if len(v) == 0 or not v[0] > 0:
        return 0.0
    if years <= MIN_CAGR_YEARS:
        return total_return(v)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        return _finite((v[-1] / v[0]) ** (1.0 / years) - 1.0)

def irr(values, years: float) -> float:
    """Life-to-date point-to-point annualised return."""
    if years <= 0:
        return 0.0
    g = 1.0 + total_return(values)
    if g <= 0:
        return 0.0
    return _finite(g ** (1.0 / years) - 1.0)

def annualized_volatility(returns) -> float:
    r = np.asarray(returns, dtype=float)
    if len(r) == 0:
        return 0.0
    return _finite(r.std() * np.sqrt(TRADING_DAYS))

def downside_deviation(returns) -> float:
    r = np.asarray(returns, dtype=float)
    if len(r) == 0:
        return 0.0
    neg = np.where(r < 0, r, 0.0)
    return _finite(np.sqrt((neg ** 2).sum() / len(r)) * np.sqrt(TRADING_DAYS))

def sharpe_sortino(cagr_value, returns, rf=RISK_FREE_RATE):
    ex = cagr_value - rf
    return _ratio(ex, annualized_volatility(returns)), _ratio(ex, downside_deviation(returns))

def calmar(cagr_value, max_dd) -> float:
    return _ratio(cagr_value, abs(max_dd))

def drawdown_series(values):
    v = np.asarray(values, dtype=float)
    peak = np.maximum.accumulate(v) if len(v) else v
    with np.errstate(divide="ignore", invalid="ignore"):
        dd = np.where(peak > 0, (v - peak) / np.where(peak > 0, peak, 1.0), 0.0)
    return np.minimum(dd, 0.0)

def max_drawdown(values) -> float:
    dd = drawdown_series(values)
    return float(dd.min()) if len(dd) else 0.0

def historical_var(returns, level: float = 0.95) -> float:
    r = np.asarray(returns, dtype=float)
    if len(r) < 20:
        return 0.0
    return min(0.0, _finite(np.percentile(r, (1 - level) * 100)))

def calendar_year_returns(close: pd.Series) -> pd.Series:
    """Return of each calendar year, measured from the prior year's last close."""
    if close.empty:
        return pd.Series(dtype=float)
    year_end = close.groupby(close.index.year).last()
    base = year_end.shift(1)
    base.iloc[0] = close.iloc[0]
    with np.errstate(divide="ignore", invalid="ignore"):
        out = year_end / base - 1.0
    return out.replace([np.inf, -np.inf], np.nan).fillna(0.0)

def growth_score(cagr_value) -> float:
    return float(min(100.0, max(0.0, _finite(cagr_value) / GROWTH_SCORE_CAGR * 100.0)))

def compute_metrics(close: pd.Series, returns, drawdown, risk_free_rate=RISK_FREE_RATE):
    """Reduce a portfolio close series to the scalar metrics bundle.

    close: portfolio value indexed by date
    returns: daily simple returns (len(close) - 1)
    drawdown: running-peak drawdown aligned with close
    """
    from ..engine.results import PortfolioMetrics

    values = close.to_numpy(dtype=float)
    years = years_between(close.index[0], close.index[-1]) if len(close) else 0.0
    c = cagr(values, years)
    sharpe, sortino = sharpe_sortino(c, returns, risk_free_rate)
    mdd = float(np.min(drawdown)) if len(drawdown) else 0.0
    yearly = calendar_year_returns(close)

    return PortfolioMetrics(
        total_return=total_return(values),
        cagr=c,
        cagr_1y=window_cagr(values, 252),
        cagr_3y=window_cagr(values, 756),
        cagr_5y=window_cagr(values, 1260),
        irr=irr(values, years),
        volatility=annualized_volatility(returns),
        sharpe_ratio=sharpe,
        sortino_ratio=sortino,
        calmar_ratio=calmar(c, mdd),
        max_drawdown=mdd,
        var_95=historical_var(returns),
        best_year=float(yearly.max()) if len(yearly) else 0.0,
        worst_year=float(yearly.min()) if len(yearly) else 0.0,
    )
