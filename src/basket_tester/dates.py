import datetime as dt

import numpy as np
import pandas as pd

DAYS_PER_YEAR = 365.25

def today() -> pd.Timestamp:
    return pd.Timestamp(dt.date.today())

def years_between(start, end) -> float:
    """Elapsed calendar time between two dates, in years of 365.25 days."""
    delta = pd.Timestamp(end) - pd.Timestamp(start)
    return delta.days / DAYS_PER_YEAR

def one_year_later(date) -> pd.Timestamp:
    return pd.Timestamp(date) + pd.DateOffset(years=1)

def trading_days_between(start, end) -> int:
    """Weekdays from start to end, both inclusive. Holidays are not modelled."""
    start = pd.Timestamp(start).normalize()
    end = pd.Timestamp(end).normalize()
    if end < start:
        return 0
    return int(np.busday_count(start.date(), (end + pd.Timedelta(days=1)).date()))

def trading_days_for_next_year(start=None) -> int:
    start = today() if start is None else pd.Timestamp(start)
    return trading_days_between(start, one_year_later(start))

def trading_day_offset(start, offset: int) -> pd.Timestamp:
    """Date `offset` business days after `start`."""
    start = pd.Timestamp(start)
    if offset == 0:
        return start
    return start + pd.offsets.BDay(offset)
