# src/analyst/indicators/volatility.py
from __future__ import annotations

import numpy as np

from analyst.data.ring_buffer import TickWindow

DEFAULT_ATR = 14       # regime / invalidation ATR
DEFAULT_FAST_ATR = 5   # volatility-expansion lookback


def compute_true_range(h: np.ndarray, l: np.ndarray, c_prev: np.ndarray) -> np.ndarray:
    # TR_t = max( H-L, |H - prevClose|, |L - prevClose| )
    tr1 = h - l
    tr2 = np.abs(h - c_prev)
    tr3 = np.abs(l - c_prev)
    return np.maximum(tr1, np.maximum(tr2, tr3))


def true_ranges(window: TickWindow, period: int) -> np.ndarray:
    """
    True ranges of the last `period` ticks. The first tick of the slice has
    no previous close inside the slice and contributes plain high - low.
    """
    w = window.last(period)
    if len(w) == 0:
        return np.empty(0, dtype=np.float64)
    tr = np.empty(len(w), dtype=np.float64)
    tr[0] = w.high[0] - w.low[0]
    if len(w) > 1:
        tr[1:] = compute_true_range(w.high[1:], w.low[1:], w.price[:-1])
    return tr


def atr(window: TickWindow, period: int = DEFAULT_ATR) -> float:
    """
    Simple-mean Average True Range over the last `period` ticks, recomputed
    in full on every call. Returns 0.0 when fewer than `period` ticks exist.
    """
    period = int(period)
    if period <= 0 or len(window) < period:
        return 0.0
    value = float(np.mean(true_ranges(window, period)))
    return value if value > 0.0 else 0.0
