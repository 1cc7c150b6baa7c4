from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import structlog

from analyst.alerts.rules import DEFAULT_RULES, CycleFeatures, SetupRule
from analyst.analysis.state import AnalysisState
from analyst.data.ring_buffer import TickWindow
from analyst.indicators.volatility import DEFAULT_FAST_ATR, atr
from analyst.utils.time import epoch_ms, seconds_between
from analyst.utils.types import Alert

log = structlog.get_logger("alerts")

@dataclass(slots=True)
class EvaluatorConfig:
    asset: str = "BTC/USDT"
    min_ticks: int = 30
    cooldown_seconds: float = 30.0
    volume_lookback: int = 20
    fast_atr_period: int = DEFAULT_FAST_ATR
    rules: tuple[SetupRule, ...] = field(default_factory=lambda: DEFAULT_RULES)


class AlertEvaluator:
    """
    Tries the configured setup rules in priority order against the current
    window and state and returns at most one Alert per call.

    The cooldown is a hard gate checked before any rule: while fewer than
    `cooldown_seconds` have passed since state.last_alert_time nothing fires,
    no matter how many rules would match. Firing stamps last_alert_time.
    """
    def __init__(self, cfg: Optional[EvaluatorConfig] = None):
        self.cfg = cfg or EvaluatorConfig()

    def in_cooldown(self, state: AnalysisState, now: float) -> bool:
        if state.last_alert_time is None:
            return False
        return seconds_between(state.last_alert_time, now) < self.cfg.cooldown_seconds

    def features(self, window: TickWindow) -> CycleFeatures:
        vols = window.volume[-self.cfg.volume_lookback:]
        return CycleFeatures(
            tick=window.tick(-1),
            volume_avg=float(np.mean(vols)) if vols.size else 0.0,
            fast_atr=atr(window, self.cfg.fast_atr_period),
        )

    def evaluate(self, window: TickWindow, state: AnalysisState, now: float) -> Optional[Alert]:
        if len(window) < self.cfg.min_ticks:
            return None
        if self.in_cooldown(state, now):
            return None

        feats = self.features(window)
        for rule in self.cfg.rules:
            m = rule.match(feats, state)
            if m is None:
                continue
            state.last_alert_time = now
            alert = Alert(
                id=f"{rule.name}-{epoch_ms(now)}",
                timestamp=now,
                asset=self.cfg.asset,
                event=rule.event,
                bias=m.bias,
                trigger_level=float(m.trigger_level),
                invalidation_level=float(m.invalidation_level),
                probability=rule.probability,
                risk_note=m.risk_note,
                rule=rule.name,
            )
            log.debug("alert_fired", rule=rule.name, bias=m.bias, trigger=round(alert.trigger_level, 4))
            return alert
        return None
