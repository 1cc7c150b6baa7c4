# src/analyst/alerts/rules.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from analyst.analysis.state import AnalysisState
from analyst.utils.types import Bias, Tick


@dataclass(slots=True, frozen=True)
class CycleFeatures:
    """Per-cycle inputs shared by every rule, computed once by the evaluator."""
    tick: Tick              # newest tick
    volume_avg: float       # mean volume over the volume lookback (incl. newest)
    fast_atr: float         # ATR over the short lookback


@dataclass(slots=True, frozen=True)
class SetupMatch:
    bias: Bias
    trigger_level: float
    invalidation_level: float
    risk_note: str


Predicate = Callable[[CycleFeatures, AnalysisState], Optional[SetupMatch]]


@dataclass(slots=True, frozen=True)
class SetupRule:
    """
    One alert setup. `match` returns None when the setup is absent.
    Rules are tried in list order; the first match wins the cycle.
    """
    name: str
    event: str
    probability: int
    match: Predicate


VOLUME_SPIKE = 1.5        # x average volume
LEVEL_ATR_BUFFER = 1.5    # x ATR beyond the broken level
EXPANSION_RATIO = 1.8     # fast ATR vs ATR(14)
EXPANSION_STOP_ATR = 2.0  # x fast ATR from price


def _breakout(f: CycleFeatures, st: AnalysisState) -> Optional[SetupMatch]:
    resistance = st.key_levels.resistance
    if resistance is None or resistance <= 0.0:
        return None
    if f.tick.price > resistance and f.tick.volume > f.volume_avg * VOLUME_SPIKE:
        inval = resistance - st.atr * LEVEL_ATR_BUFFER
        return SetupMatch(
            bias="bull",
            trigger_level=resistance,
            invalidation_level=inval,
            risk_note=f"Invalidation if price closes below {inval:.2f}",
        )
    return None


def _breakdown(f: CycleFeatures, st: AnalysisState) -> Optional[SetupMatch]:
    support = st.key_levels.support
    if support is None or support <= 0.0:
        return None
    if f.tick.price < support and f.tick.volume > f.volume_avg * VOLUME_SPIKE:
        inval = support + st.atr * LEVEL_ATR_BUFFER
        return SetupMatch(
            bias="bear",
            trigger_level=support,
            invalidation_level=inval,
            risk_note=f"Invalidation if price reclaims above {inval:.2f}",
        )
    return None


def _volatility_expansion(f: CycleFeatures, st: AnalysisState) -> Optional[SetupMatch]:
    if st.atr <= 0.0 or f.fast_atr <= st.atr * EXPANSION_RATIO:
        return None
    offset = f.fast_atr * EXPANSION_STOP_ATR
    px = f.tick.price
    return SetupMatch(
        bias=st.bias,
        trigger_level=px,
        invalidation_level=px - offset if st.bias == "bull" else px + offset,
        risk_note="Watch for directional move. High volatility suggests potential trend start.",
    )


def _liquidity_sweep(f: CycleFeatures, st: AnalysisState) -> Optional[SetupMatch]:
    if len(st.recent_lows) < 2:
        return None
    prev_low = st.recent_lows[-2]
    wick_low = f.tick.low
    # wick below the prior low, close back above it
    if wick_low < prev_low and f.tick.price > prev_low:
        return SetupMatch(
            bias="bull",
            trigger_level=prev_low,
            invalidation_level=wick_low,
            risk_note=f"Invalidation if price returns below {wick_low:.2f}. Possible liquidity grab.",
        )
    return None


BREAKOUT = SetupRule(
    name="breakout",
    event="Breakout above resistance with volume confirmation",
    probability=68,
    match=_breakout,
)
BREAKDOWN = SetupRule(
    name="breakdown",
    event="Breakdown below support with volume confirmation",
    probability=65,
    match=_breakdown,
)
VOLATILITY_EXPANSION = SetupRule(
    name="volatility_expansion",
    event="Volatility expansion after compression",
    probability=58,
    match=_volatility_expansion,
)
LIQUIDITY_SWEEP = SetupRule(
    name="liquidity_sweep",
    event="Liquidity sweep below previous low with reclaim",
    probability=62,
    match=_liquidity_sweep,
)

# priority order
DEFAULT_RULES: tuple[SetupRule, ...] = (BREAKOUT, BREAKDOWN, VOLATILITY_EXPANSION, LIQUIDITY_SWEEP)
