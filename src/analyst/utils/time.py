from __future__ import annotations

import time
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

def utc_now_s() -> float:
    """Unix epoch seconds (float)."""
    return time.time()

def epoch_ms(ts: float) -> int:
    """Epoch seconds -> integer epoch milliseconds."""
    return int(round(ts * 1000.0))

def utc_dt(ts: float | int) -> datetime:
    """Epoch seconds -> timezone-aware UTC datetime."""
    return datetime.fromtimestamp(float(ts), tz=timezone.utc)

def clock_str(ts: float, tz_name: str = "UTC") -> str:
    """Wall-clock time of `ts` in `tz_name`, e.g. 11:28:30 UTC."""
    return utc_dt(ts).astimezone(ZoneInfo(tz_name)).strftime("%H:%M:%S %Z")

def seconds_between(earlier: float, later: float) -> float:
    """Non-negative elapsed time (clamped at 0)."""
    return max(0.0, later - earlier)
