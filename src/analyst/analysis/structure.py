"""Swing detection and HH/HL/LH/LL structure labelling."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from analyst.analysis.state import MAX_RECENT_SWINGS, AnalysisState
from analyst.data.ring_buffer import TickWindow


@dataclass(slots=True)
class StructureConfig:
    lookback: int = 20       # ticks scanned for swings
    neighborhood: int = 2    # strict extremum over +/- this many ticks
    keep: int = MAX_RECENT_SWINGS


def find_swings(prices: np.ndarray, neighborhood: int = 2) -> tuple[list[float], list[float]]:
    """
    Strict local extrema of `prices`, in chronological order.

    Position i (neighborhood <= i < len - neighborhood) is a swing high when
    prices[i] is strictly greater than every price within +/- neighborhood,
    and a swing low when strictly less.
    """
    p = np.asarray(prices, dtype=np.float64)
    k = int(neighborhood)
    n = p.size
    if k <= 0 or n < 2 * k + 1:
        return [], []

    center = p[k:n - k]
    is_high = np.ones(center.size, dtype=bool)
    is_low = np.ones(center.size, dtype=bool)
    for d in range(1, k + 1):
        left = p[k - d:n - k - d]
        right = p[k + d:n - k + d]
        is_high &= (center > left) & (center > right)
        is_low &= (center < left) & (center < right)

    return center[is_high].tolist(), center[is_low].tolist()


def detect_structure(window: TickWindow, state: AnalysisState, cfg: StructureConfig | None = None) -> None:
    """
    Re-derive recent swings from the last `lookback` prices and update the
    structure label, bias and key levels. No-op until `lookback` ticks exist.
    """
    cfg = cfg or StructureConfig()
    if len(window) < cfg.lookback:
        return

    highs, lows = find_swings(window.price[-cfg.lookback:], cfg.neighborhood)

    state.recent_highs = highs[-cfg.keep:]
    state.recent_lows = lows[-cfg.keep:]

    # first match wins; otherwise keep the previous label and bias
    if len(highs) >= 2 and highs[-1] > highs[-2]:
        state.last_structure, state.bias = "HH", "bull"
    elif len(lows) >= 2 and lows[-1] < lows[-2]:
        state.last_structure, state.bias = "LL", "bear"
    elif len(highs) >= 2 and highs[-1] < highs[-2]:
        state.last_structure, state.bias = "LH", "bear"
    elif len(lows) >= 2 and lows[-1] > lows[-2]:
        state.last_structure, state.bias = "HL", "bull"

    if state.recent_lows:
        state.key_levels.support = min(state.recent_lows)
    if state.recent_highs:
        state.key_levels.resistance = max(state.recent_highs)
