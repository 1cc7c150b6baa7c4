from __future__ import annotations

import math
from typing import Optional, Protocol

from analyst.utils.errors import InvalidTick
from analyst.utils.types import Tick


class TickSource(Protocol):
    """
    Anything that can hand the session one tick per cycle. `fetch` may
    suspend (network I/O) and raises FetchError on a transient failure.
    """
    async def fetch(self) -> Tick: ...


def validate_tick(t: Tick, last_ts: Optional[float] = None) -> Tick:
    """
    Reject ticks that would corrupt swing/ATR computations. Returns the tick
    unchanged when it is usable, raises InvalidTick otherwise.
    """
    values = (t.timestamp, t.price, t.bid, t.ask, t.volume, t.high, t.low)
    if not all(math.isfinite(v) for v in values):
        raise InvalidTick(f"non-finite field in {t!r}")
    if t.price <= 0.0:
        raise InvalidTick(f"price must be positive, got {t.price}")
    if t.low > t.high:
        raise InvalidTick(f"low {t.low} above high {t.high}")
    if not (t.low <= t.price <= t.high):
        raise InvalidTick(f"price {t.price} outside [{t.low}, {t.high}]")
    if t.bid >= t.ask:
        raise InvalidTick(f"bid {t.bid} not below ask {t.ask}")
    if t.volume < 0.0:
        raise InvalidTick(f"negative volume {t.volume}")
    if last_ts is not None and t.timestamp < last_ts:
        raise InvalidTick(f"timestamp {t.timestamp} older than last tick {last_ts}")
    return t
