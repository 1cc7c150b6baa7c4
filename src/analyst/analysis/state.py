from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from analyst.utils.types import Bias, Regime, Structure

MAX_RECENT_SWINGS = 3

@dataclass(slots=True)
class KeyLevels:
    support: Optional[float] = None     # None = not derived yet
    resistance: Optional[float] = None

@dataclass(slots=True)
class AnalysisState:
    """
    Everything carried from one cycle to the next for the monitored
    instrument. Owned by the session driver; stages mutate it in place.
    """
    bias: Bias = "neutral"
    regime: Regime = "range"
    key_levels: KeyLevels = field(default_factory=KeyLevels)
    last_structure: Optional[Structure] = None
    recent_highs: list[float] = field(default_factory=list)  # oldest first, <= 3
    recent_lows: list[float] = field(default_factory=list)
    atr: float = 0.0
    last_alert_time: Optional[float] = None  # epoch seconds

    def copy(self) -> "AnalysisState":
        return AnalysisState(
            bias=self.bias,
            regime=self.regime,
            key_levels=KeyLevels(self.key_levels.support, self.key_levels.resistance),
            last_structure=self.last_structure,
            recent_highs=list(self.recent_highs),
            recent_lows=list(self.recent_lows),
            atr=self.atr,
            last_alert_time=self.last_alert_time,
        )

    def to_dict(self) -> dict:
        return {
            "bias": self.bias,
            "regime": self.regime,
            "key_levels": {
                "support": self.key_levels.support,
                "resistance": self.key_levels.resistance,
            },
            "last_structure": self.last_structure,
            "recent_highs": list(self.recent_highs),
            "recent_lows": list(self.recent_lows),
            "atr": self.atr,
            "last_alert_time": self.last_alert_time,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "AnalysisState":
        levels = d.get("key_levels") or {}
        support = levels.get("support")
        resistance = levels.get("resistance")
        last_alert = d.get("last_alert_time")
        return cls(
            bias=d.get("bias", "neutral"),
            regime=d.get("regime", "range"),
            key_levels=KeyLevels(
                support=None if support is None else float(support),
                resistance=None if resistance is None else float(resistance),
            ),
            last_structure=d.get("last_structure"),
            recent_highs=[float(x) for x in d.get("recent_highs", [])][-MAX_RECENT_SWINGS:],
            recent_lows=[float(x) for x in d.get("recent_lows", [])][-MAX_RECENT_SWINGS:],
            atr=max(0.0, float(d.get("atr", 0.0))),
            last_alert_time=None if last_alert is None else float(last_alert),
        )
