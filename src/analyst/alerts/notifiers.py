# src/analyst/alerts/notifiers.py
from __future__ import annotations

import structlog
from typing import Callable, Optional

from analyst.utils.types import Alert

log = structlog.get_logger("notifier")

_RAW_FMT = "[ALERT] {asset} {rule} bias={bias} trigger={trigger_level} p={probability} msg={event}"

class ConsoleNotifier:
    def __init__(self, format_fn: Optional[Callable[[Alert], str]] = None):
        self._format_fn = format_fn

    async def send(self, alert: Alert):
        if self._format_fn:
            try:
                text = self._format_fn(alert)
                print(text, flush=True)
                return
            except Exception as e:
                log.warning("console_format_failed", err=str(e))
        # fallback (raw)
        print(_RAW_FMT.format(**alert.to_dict()), flush=True)
