from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from analyst.analysis.state import AnalysisState
from analyst.data.ring_buffer import TickWindow
from analyst.indicators.volatility import DEFAULT_ATR, atr


@dataclass(slots=True)
class RegimeConfig:
    lookback: int = 20
    atr_period: int = DEFAULT_ATR
    high_vol_ratio: float = 0.015   # (max - min) / mean above this -> high-volatility
    trend_ratio: float = 0.01       # swing drift vs mean price above this -> trend


def classify_regime(window: TickWindow, state: AnalysisState, cfg: RegimeConfig | None = None) -> None:
    """
    Refresh state.atr and label the regime. Reads the swings written by the
    structure stage, so it must run after it. No-op until `lookback` ticks.
    """
    cfg = cfg or RegimeConfig()
    if len(window) < cfg.lookback:
        return

    state.atr = atr(window, cfg.atr_period)

    recent = window.price[-cfg.lookback:]
    avg_price = float(np.mean(recent))
    if avg_price <= 0.0:
        return
    volatility_ratio = float(np.max(recent) - np.min(recent)) / avg_price

    if volatility_ratio > cfg.high_vol_ratio:
        state.regime = "high-volatility"
    elif len(state.recent_highs) >= 2 and len(state.recent_lows) >= 2:
        trend_strength = abs(
            (state.recent_highs[-1] - state.recent_highs[0])
            + (state.recent_lows[-1] - state.recent_lows[0])
        )
        state.regime = "trend" if trend_strength > avg_price * cfg.trend_ratio else "range"
