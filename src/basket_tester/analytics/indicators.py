"""
Technical indicators over daily price series.

All functions are stateless, accept any 1-D sequence and return a float
numpy array of the same length. Warm-up regions are filled with usable
values instead of NaN (raw prices for SMA, 50 for RSI, 0 for ATR) so the
outputs can be compared element-wise without masking.
"""
import numpy as np

RSI_PERIOD = 14
ATR_PERIOD = 14
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9

def _arr(data):
    return np.asarray(data, dtype=float).ravel()

def sma(data, period: int):
    x = _arr(data)
    out = x.copy()
    if period <= 1 or len(x) < period:
        return out
    c = np.cumsum(np.insert(x, 0, 0.0))
    out[period - 1:] = (c[period:] - c[:-period]) / period
    return out

def ema(data, period: int):
    x = _arr(data)
    out = np.empty_like(x)
    if len(x) == 0:
        return out
    k = 2.0 / (period + 1)
    out[0] = x[0]
    for i in range(1, len(x)):
        out[i] = x[i] * k + out[i - 1] * (1 - k)
    return out

def rsi(data, period: int = RSI_PERIOD):
    """Wilder RSI. The first `period` values stay at the neutral 50."""
    x = _arr(data)
    out = np.full(len(x), 50.0)
    if len(x) <= period:
        return out

    diff = np.diff(x)
    avg_gain = np.clip(diff[:period], 0, None).sum() / period
    avg_loss = -np.clip(diff[:period], None, 0).sum() / period
    for i in range(period + 1, len(x)):
        d = diff[i - 1]
        avg_gain = (avg_gain * (period - 1) + max(d, 0.0)) / period
        avg_loss = (avg_loss * (period - 1) + max(-d, 0.0)) / period
        if avg_loss == 0:
            out[i] = 100.0
        else:
            out[i] = 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)
    return out

def macd(data, fast: int = MACD_FAST, slow: int = MACD_SLOW, signal: int = MACD_SIGNAL):
    """Returns (macd_line, signal_line)."""
    x = _arr(data)
    line = ema(x, fast) - ema(x, slow)
    return line, ema(line, signal)

def true_range(high, low, close):
    h, l, c = _arr(high), _arr(low), _arr(close)
    if len(c) < 2:
        return np.zeros(0)
    prev = c[:-1]
    return np.maximum.reduce([h[1:] - l[1:], np.abs(h[1:] - prev), np.abs(l[1:] - prev)])

def atr(ohlc, period: int = ATR_PERIOD):
    """Wilder ATR over a frame with high/low/close columns.

    The first value is the plain mean of the first `period` true ranges and
    sits at index `period`; everything before it is 0.
    """
    close = _arr(ohlc["close"])
    out = np.zeros(len(close))
    tr = true_range(ohlc["high"], ohlc["low"], close)
    if len(tr) < period:
        return out
    out[period] = tr[:period].mean()
    for i in range(period + 1, len(close)):
        out[i] = (out[i - 1] * (period - 1) + tr[i - 1]) / period
    return out
