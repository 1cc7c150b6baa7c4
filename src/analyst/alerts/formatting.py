from __future__ import annotations

from analyst.utils.time import clock_str
from analyst.utils.types import Alert

_ARROWS = {"bull": "↑", "bear": "↓", "neutral": "→"}

def format_alert_pretty(alert: Alert, tz_name: str = "UTC") -> str:
    arrow = _ARROWS.get(alert.bias, "?")
    return (
        f"[{alert.asset} {alert.bias.upper()}] {clock_str(alert.timestamp, tz_name)} {arrow} "
        f"{alert.event}  |  trigger {alert.trigger_level:.2f}  "
        f"invalidation {alert.invalidation_level:.2f}  "
        f"({alert.probability}%)  |  Risk: {alert.risk_note}"
    )

def format_status(regime: str, bias: str) -> str:
    return f"Monitoring • {regime.upper()} • {bias.upper()} bias"
