import logging

from basket_tester.config import Basket, BasketItem, ForecastConfig
from basket_tester.data.cache import PriceCache
from basket_tester.data.fetchers import fetch_daily_ohlc
from basket_tester.engine.simulator import run_simulation

def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # 1) Basket
    basket = Basket(
        id="demo",
        name="Nifty core",
        items=(
            BasketItem("RELIANCE.NS", 30),
            BasketItem("HDFCBANK.NS", 25),
            BasketItem("INFY.NS", 20),
            BasketItem("ITC.NS", 15),
            BasketItem("TATASTEEL.NS", 10),
        ),
        initial_capital=1_000_000,
    )

    # 2) Data
    cache = PriceCache("data_cache")
    series = fetch_daily_ohlc(basket.tickers(), cache)

    # 3) Simulate
    fc_cfg = ForecastConfig(strategy="target_sl", simulations=3000, seed=42, workers=4)
    res = run_simulation(basket, series, forecast=fc_cfg)

    # 4) Summary
    def pct(x): return f"{100*x:.1f}%"
    m = res.metrics
    alloc = res.initial_allocation
    print(f"=== Backtest {res.history.index[0]:%Y-%m-%d} .. {res.history.index[-1]:%Y-%m-%d} ===")
    for w in res.warnings:
        print(f"warning: {w}")
    for d in alloc.details:
        print(f"{d.ticker:<14} {d.shares_bought:>6} sh @ {d.price_at_buy:>10,.2f}  "
              f"weight {d.actual_weight:5.1f}% (target {d.target_weight:.1f}%)")
    print(f"Uninvested cash: {alloc.uninvested_cash:,.0f} ({pct(alloc.cash_drag)})")
    print(f"CAGR: {pct(m.cagr)}  1Y: {pct(m.cagr_1y)}  3Y: {pct(m.cagr_3y)}  5Y: {pct(m.cagr_5y)}")
    print(f"Volatility: {pct(m.volatility)}  Sharpe: {m.sharpe_ratio:.2f}  "
          f"Sortino: {m.sortino_ratio:.2f}  Calmar: {m.calmar_ratio:.2f}")
    print(f"Max Drawdown: {pct(m.max_drawdown)}  Growth score: {res.growth_score:.0f}")

    fc = res.forecast
    print(f"=== One-year forecast ({fc.strategy}) ===")
    print(f"Probability of profit: {pct(fc.prob_profit)}")
    print("Percentiles (10/50/90) - End Value:",
          [f"{p[-1]:,.0f}" for p in (fc.paths.p10, fc.paths.p50, fc.paths.p90)])
    for t in fc.trades:
        print(f"  {t.entry_date:%Y-%m-%d} -> {t.exit_date:%Y-%m-%d}  {pct(t.return_pct):>7}  {t.reason}")


if __name__ == "__main__":
    main()
