import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

import pandas as pd

from ..analytics.metrics import compute_metrics
from ..config import EngineConfig, ForecastConfig
from ..data.series import AssetSeries
from ..dates import today as current_date, trading_days_for_next_year
from .allocation import allocate, weight_base
from .backtest import backtest_window, build_history
from .errors import NoActiveAssetsError
from .forecast import forecast_assets, run_monte_carlo
from .results import SimulationResult

logger = logging.getLogger(__name__)

def _series_for(basket, series):
    out = {}
    for t in basket.tickers():
        s = series.get(t)
        out[t] = s if s is not None else AssetSeries.from_frame(t, None)
    return out

def _closes_on(series, date):
    return {t: s.close_on(date) for t, s in series.items()}

def run_simulation(basket, series, config: EngineConfig = EngineConfig(),
                   forecast: ForecastConfig = ForecastConfig(), today=None) -> SimulationResult:
    """Backtest a basket over its assets' common history and forecast one year ahead.

    series: ticker -> AssetSeries (extra tickers are ignored)
    Raises NoActiveAssetsError / InsufficientHistoryError before any result is built.
    """
    items = basket.active_items()
    if not items:
        raise NoActiveAssetsError(f"Basket {basket.id} has no active assets.")

    assets = _series_for(basket, series)
    today = current_date() if today is None else pd.Timestamp(today)
    warnings = []
    for t, s in assets.items():
        if 0 < len(s) < config.short_history_bars:
            warnings.append(f"{t}: History is less than 1 year. Annualized metrics may be unreliable.")
    if basket.rebalance_interval != "none":
        warnings.append(f"Rebalancing interval '{basket.rebalance_interval}' is not applied; "
                        f"results reflect buy-and-hold.")
    if basket.allocation_mode == "weight" and weight_base(items) > 100.0:
        warnings.append(f"Weights sum to {basket.total_weight():g}%; scaled down to 100%.")

    # shares are fixed at the first common date, then replayed over the window
    window = backtest_window(assets, today, config.min_overlap_days)
    start, end = window[0], window[-1]
    initial = allocate(items, _closes_on(assets, start), basket.allocation_mode, basket.initial_capital)
    bt = build_history(initial.shares(), assets, today, config.min_overlap_days)
    warnings = bt.warnings + warnings
    live = allocate(items, _closes_on(assets, end), basket.allocation_mode, basket.initial_capital)

    metrics = compute_metrics(bt.history["close"], bt.returns, bt.drawdown, config.risk_free_rate)
    for w in warnings:
        logger.warning("%s: %s", basket.id, w)

    fc = None
    asset_fcs = []
    if forecast.enabled:
        horizon = forecast.horizon if forecast.horizon is not None else trading_days_for_next_year(today)
        fc = run_monte_carlo(
            bt.history,
            float(bt.history["close"].iloc[-1]),
            horizon=horizon,
            simulations=forecast.simulations,
            strategy=forecast.strategy,
            seed=forecast.seed,
            workers=forecast.workers,
        )
        if forecast.asset_forecasts:
            known = {t: AssetSeries(t, s.prices.loc[:bt.end]) for t, s in assets.items()}
            asset_fcs = forecast_assets(known, horizon, forecast.asset_simulations, forecast.seed)

    logger.debug("%s: %d days, CAGR %.4f, max drawdown %.4f",
                 basket.id, len(bt.history), metrics.cagr, metrics.max_drawdown)
    return SimulationResult(
        basket_id=basket.id,
        history=bt.history,
        initial_allocation=initial,
        live_allocation=live,
        metrics=metrics,
        warnings=warnings,
        drawdown=bt.drawdown,
        comparison=bt.asset_values,
        comparison_returns=bt.asset_returns,
        forecast=fc,
        asset_forecasts=asset_fcs,
        inception_value=basket.inception_value,
    )

def simulate_all(baskets, series, previous=None, workers: int = 4, **kwargs):
    """Simulate independent baskets concurrently.

    A basket that fails keeps its entry from `previous` (or None) instead of
    aborting the batch. Returns {basket_id: SimulationResult | None}.
    """
    previous = previous or {}
    results = {}
    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        futures = {pool.submit(run_simulation, b, series, **kwargs): b for b in baskets}
        for f in as_completed(futures):
            b = futures[f]
            try:
                results[b.id] = f.result()
            except Exception:
                logger.exception("Simulation failed for basket %s; keeping previous result", b.id)
                results[b.id] = previous.get(b.id)
    return {b.id: results.get(b.id) for b in baskets}
