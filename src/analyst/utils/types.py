from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Literal, Optional

# ---- classification labels ----

Bias = Literal["bull", "bear", "neutral"]
Regime = Literal["trend", "range", "high-volatility"]
Structure = Literal["HH", "HL", "LH", "LL"]

# ---- ingest-level primitives ----

@dataclass(slots=True, frozen=True)
class Tick:
    timestamp: float  # epoch seconds
    price: float
    bid: float
    ask: float
    volume: float
    high: float
    low: float

# ---- alerting domain ----

@dataclass(slots=True, frozen=True)
class Alert:
    """
    One emitted setup. `probability` is a fixed heuristic score per rule
    (0-100), not an estimate.
    """
    id: str
    timestamp: float
    asset: str
    event: str
    bias: Bias
    trigger_level: float
    invalidation_level: float
    probability: int
    risk_note: str
    rule: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


ChartPoint = tuple[float, float]  # (timestamp, price)


@dataclass(slots=True, frozen=True)
class DisplaySnapshot:
    """What a UI needs after each cycle."""
    current_price: Optional[float]
    status: str
    alerts: list[Alert]      # most recent first
    chart: list[ChartPoint]  # oldest first
    running: bool
