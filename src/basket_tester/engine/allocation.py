import math
from typing import Dict, Iterable

from ..config import AllocationMode, BasketItem
from .results import AllocationDetail, PortfolioAllocation

def whole_shares(target_amount: float, price: float) -> int:
    if not price > 0 or not target_amount > 0:
        return 0
    return int(math.floor(target_amount / price))

def weight_base(items) -> float:
    """Divisor for item weights: 100, or the weight total when it exceeds 100."""
    return max(100.0, sum(i.weight for i in items))

def allocate(items: Iterable[BasketItem], prices: Dict[str, float],
             mode: AllocationMode, capital: float) -> PortfolioAllocation:
    """Turn target weights (or explicit share counts) into whole-share purchases.

    prices: ticker -> close on the valuation date (missing => 0, no shares bought)
    Weights summing above 100 are scaled down to 100 before sizing.
    In quantity mode explicit share counts are taken as-is and may cost more
    than `capital`; the reported total capital then grows to the invested amount
    so that invested + uninvested == total always holds.
    """
    items = list(items)
    base = weight_base(items)
    rows = []
    for item in items:
        price = float(prices.get(item.ticker, 0.0) or 0.0)
        target_weight = item.weight * 100.0 / base
        target_amount = capital * item.weight / base
        if mode == "quantity" and item.shares is not None:
            qty = int(item.shares)
        else:
            qty = whole_shares(target_amount, price)
        rows.append((item.ticker, price, target_weight, target_amount, qty,
                     qty * price if price > 0 else 0.0))

    invested = sum(r[5] for r in rows)
    total = max(capital, invested) if mode == "quantity" else capital

    details = tuple(
        AllocationDetail(
            ticker=ticker,
            target_weight=target_weight,
            target_amount=target_amount,
            price_at_buy=price,
            shares_bought=qty,
            actual_amount=actual,
            actual_weight=actual / total * 100.0 if total > 0 else 0.0,
        )
        for ticker, price, target_weight, target_amount, qty, actual in rows
    )
    return PortfolioAllocation(
        total_capital=total,
        invested_capital=invested,
        uninvested_cash=max(0.0, total - invested),
        details=details,
    )
