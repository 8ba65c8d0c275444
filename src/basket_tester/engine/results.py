from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

import numpy as np
import pandas as pd

from ..analytics.metrics import growth_score

ExitReason = Literal["target", "stop_loss", "crossover", "hold", "end_of_period"]

@dataclass(frozen=True)
class AllocationDetail:
    ticker: str
    target_weight: float     # percent
    target_amount: float
    price_at_buy: float
    shares_bought: int
    actual_amount: float
    actual_weight: float     # percent of total capital

    @property
    def weight_error(self) -> float:
        return self.actual_weight - self.target_weight

@dataclass(frozen=True)
class PortfolioAllocation:
    total_capital: float
    invested_capital: float
    uninvested_cash: float
    details: Tuple[AllocationDetail, ...]

    def shares(self) -> Dict[str, int]:
        return {d.ticker: d.shares_bought for d in self.details}

    @property
    def cash_drag(self) -> float:
        """Uninvested cash as a fraction of total capital."""
        return self.uninvested_cash / self.total_capital if self.total_capital > 0 else 0.0

@dataclass
class Trade:
    entry_date: pd.Timestamp
    entry_price: float
    exit_date: Optional[pd.Timestamp] = None
    exit_price: Optional[float] = None
    return_pct: Optional[float] = None
    reason: ExitReason = "hold"

    def close(self, date, price, reason, return_pct=None):
        self.exit_date = date
        self.exit_price = float(price)
        self.return_pct = float(return_pct if return_pct is not None
                                else (price - self.entry_price) / self.entry_price)
        self.reason = reason

@dataclass(frozen=True)
class MonteCarloPath:
    p10: np.ndarray
    p50: np.ndarray
    p90: np.ndarray

    @classmethod
    def flat(cls, value: float, horizon: int):
        v = np.full(horizon + 1, float(value))
        return cls(v.copy(), v.copy(), v.copy())

@dataclass(frozen=True)
class ForecastResult:
    paths: MonteCarloPath
    prob_profit: float
    median_end_value: float
    end_values: np.ndarray
    trades: List[Trade] = field(default_factory=list)
    strategy: str = "hold"
    indicators: Dict[str, float] = field(default_factory=dict)   # reference-only readings

@dataclass(frozen=True)
class AssetForecast:
    ticker: str
    expected_return: float
    prob_profit: float
    worst_case: float
    best_case: float

@dataclass(frozen=True)
class PortfolioMetrics:
    total_return: float = 0.0
    cagr: float = 0.0
    cagr_1y: float = 0.0
    cagr_3y: float = 0.0
    cagr_5y: float = 0.0
    irr: float = 0.0
    volatility: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0
    max_drawdown: float = 0.0
    var_95: float = 0.0
    best_year: float = 0.0
    worst_year: float = 0.0

@dataclass(frozen=True)
class SimulationResult:
    basket_id: str
    history: pd.DataFrame                 # portfolio open/high/low/close/volume
    initial_allocation: PortfolioAllocation
    live_allocation: PortfolioAllocation
    metrics: PortfolioMetrics
    warnings: List[str]
    drawdown: pd.Series
    comparison: pd.DataFrame              # per-asset value series, one column per ticker
    comparison_returns: Dict[str, float]
    forecast: Optional[ForecastResult] = None
    asset_forecasts: List[AssetForecast] = field(default_factory=list)
    inception_value: Optional[float] = None

    @property
    def latest_value(self) -> float:
        return float(self.history["close"].iloc[-1])

    @property
    def daily_change(self) -> float:
        close = self.history["close"]
        if len(close) < 2 or not close.iloc[-2] > 0:
            return 0.0
        return float((close.iloc[-1] - close.iloc[-2]) / close.iloc[-2])

    @property
    def inception_return(self) -> float:
        base = self.inception_value or self.latest_value
        return (self.latest_value - base) / base if base > 0 else 0.0

    @property
    def growth_score(self) -> float:
        return growth_score(self.metrics.cagr)

    def to_record(self) -> dict:
        """Scalar fields stored alongside the basket record."""
        m = self.metrics
        return {
            "cagr": m.cagr,
            "cagr1y": m.cagr_1y,
            "cagr3y": m.cagr_3y,
            "cagr5y": m.cagr_5y,
            "volatility": m.volatility,
            "maxDrawdown": m.max_drawdown,
            "sharpeRatio": m.sharpe_ratio,
            "growthScore": self.growth_score,
            "irr": m.irr,
            "inceptionValue": self.inception_value or self.latest_value,
            "todayReturn": self.daily_change,
            "inceptionReturn": self.inception_return,
        }
