"""
Monte Carlo forecast of a portfolio's forward value distribution.

Paths follow a geometric Brownian motion whose daily drift and volatility
are estimated from the portfolio's own history. Three overlays change how a
path evolves:

    hold        buy and hold for the whole horizon
    target_sl   one trade at a time, 2% stop loss / 6% target, re-entering
                at the next day's open after every exit
    momentum    drift scaled up while MACD and RSI are both bullish

Percentile paths are cross-sectional: for every day the simulated values are
sorted independently and the 10th/50th/90th percentile entries are taken.
Only the median-index simulation records a trade ledger.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from ..analytics.indicators import MACD_SLOW, atr, macd, rsi, sma
from ..dates import today, trading_day_offset
from ..sampling.gbm import GBMParams, estimate
from ..sampling.random_source import NumpyRandomSource, spawn_sources, standard_normals
from .results import AssetForecast, ForecastResult, MonteCarloPath, Trade

logger = logging.getLogger(__name__)

STRATEGIES = ("hold", "target_sl", "momentum")
STOP_LOSS_PCT = 0.02
TARGET_PCT = 0.06
PERCENTILES = (0.10, 0.50, 0.90)

# --- target_sl trade states --------------------------------------------------

class Flat:
    pass

FLAT = Flat()

@dataclass(frozen=True)
class InTrade:
    entry_price: float
    entry_day: int

# --- per-run context ---------------------------------------------------------

@dataclass(frozen=True)
class MomentumBias:
    multiplier: float
    currently_bullish: bool

@dataclass
class _Run:
    params: GBMParams
    horizon: int
    start_value: float
    strategy: str
    start_date: pd.Timestamp
    designated: int
    momentum: Optional[MomentumBias] = None

    def date(self, day: int) -> pd.Timestamp:
        return trading_day_offset(self.start_date, day)

def momentum_bias(closes, mu: float) -> Optional[MomentumBias]:
    """Historical edge of bullish days (MACD above signal and RSI above 50).

    None when the history is too short for a MACD reading.
    """
    x = np.asarray(closes, dtype=float)
    if len(x) < MACD_SLOW:
        return None
    line, signal = macd(x)
    strength = rsi(x)
    bullish = (line > signal) & (strength > 50)
    prev = x[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        hist = np.where(prev != 0, (x[1:] - prev) / np.where(prev != 0, prev, 1.0), 0.0)

    days = np.flatnonzero(bullish[MACD_SLOW:]) + MACD_SLOW
    avg = float(hist[days - 1].mean()) if len(days) else mu
    mult = max(1.0, avg / (mu or 0.0001)) if avg > mu else 1.0
    return MomentumBias(multiplier=mult, currently_bullish=bool(bullish[-1]))

def _walk(start, drift, sigma, z):
    """GBM values for each row of shocks `z`, with the start value prepended."""
    steps = np.exp(drift + sigma * z)
    ones = np.ones((z.shape[0], 1))
    return start * np.cumprod(np.concatenate([ones, steps], axis=1), axis=1)

# --- strategies ----------------------------------------------------------------

def _hold(run: _Run, z, offset: int):
    p = run.params
    values = _walk(run.start_value, p.drift, p.sigma, z)
    trades = []
    d = run.designated - offset
    if 0 <= d < len(values):
        t = Trade(run.date(0), run.start_value, reason="hold")
        t.close(run.date(run.horizon), values[d, -1], "hold")
        trades.append(t)
    return values, trades

def _target_sl_path(run: _Run, z, record: bool):
    p = run.params
    out = np.empty(run.horizon + 1)
    out[0] = v = run.start_value
    state = FLAT
    trades: List[Trade] = []
    for t in range(1, run.horizon + 1):
        prev = v
        v = prev * np.exp(p.drift + p.sigma * z[t - 1])
        if state is FLAT:
            # enter at the open, i.e. the previous close
            state = InTrade(prev, t)
            if record:
                trades.append(Trade(run.date(t), prev, reason="end_of_period"))

        entry = state.entry_price
        r = (v - entry) / entry
        reason = None
        if r <= -STOP_LOSS_PCT:
            v = entry * (1 - STOP_LOSS_PCT)
            reason = "stop_loss"
        elif r >= TARGET_PCT:
            v = entry * (1 + TARGET_PCT)
            reason = "target"
        if reason is not None:
            state = FLAT
            if record:
                trades[-1].close(run.date(t), v, reason)
        out[t] = v

    if record and isinstance(state, InTrade):
        trades[-1].close(run.date(run.horizon), v, "end_of_period")
    return out, trades

def _target_sl(run: _Run, z, offset: int):
    """All rows stepped together; the designated row is replayed for its ledger."""
    p = run.params
    rows = z.shape[0]
    values = np.empty((rows, run.horizon + 1))
    values[:, 0] = v = np.full(rows, run.start_value)
    entry = np.zeros(rows)
    in_trade = np.zeros(rows, dtype=bool)
    for t in range(1, run.horizon + 1):
        prev = v
        v = prev * np.exp(p.drift + p.sigma * z[:, t - 1])
        entry = np.where(in_trade, entry, prev)
        in_trade[:] = True
        r = (v - entry) / entry
        stop = r <= -STOP_LOSS_PCT
        target = ~stop & (r >= TARGET_PCT)
        v = np.where(stop, entry * (1 - STOP_LOSS_PCT), np.where(target, entry * (1 + TARGET_PCT), v))
        in_trade &= ~(stop | target)
        values[:, t] = v

    trades = []
    d = run.designated - offset
    if 0 <= d < rows:
        _, trades = _target_sl_path(run, z[d], record=True)
    return values, trades

def _momentum_ledger(run: _Run, path) -> List[Trade]:
    # crossovers approximated by the sign of each simulated day's return
    bullish = run.momentum.currently_bullish
    trades = []
    open_trade = None
    if bullish:
        open_trade = Trade(run.date(0), run.start_value, reason="crossover")
        trades.append(open_trade)
    for t in range(1, run.horizon + 1):
        now_bullish = path[t] > path[t - 1]
        if open_trade is None and now_bullish and not bullish:
            open_trade = Trade(run.date(t), path[t], reason="crossover")
            trades.append(open_trade)
        elif open_trade is not None and bullish and not now_bullish:
            open_trade.close(run.date(t), path[t], "crossover")
            open_trade = None
        bullish = now_bullish
    if open_trade is not None:
        open_trade.close(run.date(run.horizon), path[-1], "end_of_period")
    return trades

def _momentum(run: _Run, z, offset: int):
    bias = run.momentum
    if bias is None:
        values, _ = _hold(run, z, offset)
        return values, []
    p = run.params
    drift = p.drift * bias.multiplier if bias.currently_bullish else p.drift
    values = _walk(run.start_value, drift, p.sigma, z)
    d = run.designated - offset
    trades = _momentum_ledger(run, values[d]) if 0 <= d < len(values) else []
    return values, trades

_STRATEGY_FNS = {"hold": _hold, "target_sl": _target_sl, "momentum": _momentum}

# --- driver --------------------------------------------------------------------

def _closes(history) -> np.ndarray:
    if isinstance(history, pd.DataFrame):
        return history["close"].to_numpy(dtype=float)
    return np.asarray(history, dtype=float)

def _run_chunk(run: _Run, lo: int, hi: int, source):
    z = standard_normals(source, (hi - lo) * run.horizon).reshape(hi - lo, run.horizon)
    return _STRATEGY_FNS[run.strategy](run, z, lo)

def percentile_paths(values: np.ndarray) -> MonteCarloPath:
    """Independent per-day percentiles across simulations (rows)."""
    sims = values.shape[0]
    ranked = np.sort(values, axis=0)
    picks = [ranked[min(int(np.floor(sims * q)), sims - 1)] for q in PERCENTILES]
    return MonteCarloPath(*picks)

def degenerate_forecast(initial_value: float, horizon: int, simulations: int, strategy: str = "hold"):
    return ForecastResult(
        paths=MonteCarloPath.flat(initial_value, horizon),
        prob_profit=0.0,
        median_end_value=float(initial_value),
        end_values=np.full(simulations, float(initial_value)),
        trades=[],
        strategy=strategy,
    )

def reference_indicators(history) -> dict:
    """Latest ATR(14) and its 14-day SMA. Informational only; stops and targets are fixed."""
    if not isinstance(history, pd.DataFrame) or not {"high", "low", "close"} <= set(history.columns):
        return {}
    a = atr(history)
    return {"atr": float(a[-1]), "atr_sma": float(sma(a, 14)[-1])} if len(a) else {}

def run_monte_carlo(history, initial_value: float, horizon: int = 252, simulations: int = 3000,
                    strategy: str = "hold", random_source=None, seed=None, workers: int = 1,
                    start_date=None) -> ForecastResult:
    """Simulate `simulations` paths of `horizon` trading days from `initial_value`.

    history: portfolio OHLC frame (or plain close array) used for estimation
    random_source: object with next_uniform()/uniforms(n); when given, every
        trial draws from it in order and `seed`/`workers` are ignored
    workers: > 1 splits trials into chunks, each with its own seeded stream,
        run on a thread pool
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown forecast strategy: {strategy}")
    if simulations < 1:
        raise ValueError("simulations must be at least 1")
    if horizon < 0:
        raise ValueError("horizon must be non-negative")

    closes = _closes(history)
    params = estimate(closes)
    if params is None or not initial_value > 0:
        logger.debug("Degenerate forecast input (%d closes, start value %s)", len(closes), initial_value)
        return degenerate_forecast(initial_value, horizon, simulations, strategy)

    if start_date is None:
        has_dates = isinstance(history, pd.DataFrame) and isinstance(history.index, pd.DatetimeIndex)
        start_date = history.index[-1] if has_dates and len(history) else today()

    run = _Run(
        params=params,
        horizon=horizon,
        start_value=float(initial_value),
        strategy=strategy,
        start_date=pd.Timestamp(start_date),
        designated=int(np.floor(simulations * 0.5)),
        momentum=momentum_bias(closes, params.mu) if strategy == "momentum" else None,
    )
    indicators = reference_indicators(history) if strategy == "target_sl" else {}

    if random_source is not None:
        chunks = [_run_chunk(run, 0, simulations, random_source)]
    elif workers > 1 and simulations > 1:
        n = min(workers, simulations)
        bounds = np.linspace(0, simulations, n + 1).astype(int)
        sources = spawn_sources(seed, n)
        with ThreadPoolExecutor(max_workers=n) as pool:
            futures = [pool.submit(_run_chunk, run, int(bounds[k]), int(bounds[k + 1]), sources[k])
                       for k in range(n)]
            chunks = [f.result() for f in futures]
    else:
        chunks = [_run_chunk(run, 0, simulations, NumpyRandomSource(seed))]

    values = np.vstack([c[0] for c in chunks])
    trades = [t for c in chunks for t in c[1]]
    paths = percentile_paths(values)
    end_values = values[:, -1]
    logger.debug("Monte Carlo %s: %d sims x %d days, mu=%.5f sigma=%.5f",
                 strategy, simulations, horizon, params.mu, params.sigma)

    return ForecastResult(
        paths=paths,
        prob_profit=float((end_values > initial_value).sum() / simulations),
        median_end_value=float(paths.p50[-1]),
        end_values=end_values,
        trades=trades,
        strategy=strategy,
        indicators=indicators,
    )

def forecast_assets(series, horizon: int = 252, simulations: int = 500, seed=None) -> List[AssetForecast]:
    """One-year hold forecast per asset from a unit starting value."""
    out = []
    sources = spawn_sources(seed, len(series))
    for (ticker, s), source in zip(series.items(), sources):
        res = run_monte_carlo(s.prices, 1.0, horizon, simulations, "hold", random_source=source)
        out.append(AssetForecast(
            ticker=ticker,
            expected_return=res.median_end_value - 1.0,
            prob_profit=res.prob_profit,
            worst_case=float(res.paths.p10[-1]) - 1.0,
            best_case=float(res.paths.p90[-1]) - 1.0,
        ))
    return out
