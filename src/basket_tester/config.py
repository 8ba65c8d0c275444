from dataclasses import dataclass
from typing import List, Literal, Optional, Tuple

AllocationMode = Literal["weight", "quantity"]
RebalanceInterval = Literal["none", "monthly", "quarterly", "yearly"]
ForecastStrategy = Literal["hold", "target_sl", "momentum"]

@dataclass(frozen=True)
class BasketItem:
    ticker: str
    weight: float                  # 0..100, percent of capital
    shares: Optional[int] = None   # used when allocation_mode == "quantity"
    suppressed: bool = False       # excluded from the simulation, kept in the basket

    def __post_init__(self):
        if not 0.0 <= float(self.weight) <= 100.0:
            raise ValueError(f"{self.ticker}: weight must be within 0..100, got {self.weight}")
        if self.shares is not None and int(self.shares) < 0:
            raise ValueError(f"{self.ticker}: shares must be non-negative, got {self.shares}")

@dataclass(frozen=True)
class Basket:
    id: str
    items: Tuple[BasketItem, ...]
    initial_capital: float
    name: str = ""
    allocation_mode: AllocationMode = "weight"
    rebalance_interval: RebalanceInterval = "none"
    inception_value: Optional[float] = None   # portfolio value when the basket was first saved

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))
        tickers = [i.ticker for i in self.items]
        if len(set(tickers)) != len(tickers):
            raise ValueError(f"Basket {self.id}: duplicate tickers in {tickers}")
        if not self.initial_capital > 0:
            raise ValueError(f"Basket {self.id}: initial_capital must be positive")
        if self.allocation_mode not in ("weight", "quantity"):
            raise ValueError(f"Unknown allocation mode: {self.allocation_mode}")
        if self.rebalance_interval not in ("none", "monthly", "quarterly", "yearly"):
            raise ValueError(f"Unknown rebalance interval: {self.rebalance_interval}")

    def active_items(self) -> List[BasketItem]:
        return [i for i in self.items if not i.suppressed]

    def tickers(self):
        return [i.ticker for i in self.active_items()]

    def total_weight(self) -> float:
        return sum(i.weight for i in self.active_items())

@dataclass(frozen=True)
class EngineConfig:
    risk_free_rate: float = 0.06     # annual, Indian risk-free proxy
    min_overlap_days: int = 20
    short_history_bars: int = 200    # below this an asset gets a data-maturity warning

@dataclass(frozen=True)
class ForecastConfig:
    enabled: bool = True
    strategy: ForecastStrategy = "hold"
    simulations: int = 3000
    horizon: Optional[int] = None    # None => trading days to the same date next year
    seed: Optional[int] = None
    workers: int = 1
    asset_forecasts: bool = True
    asset_simulations: int = 500
