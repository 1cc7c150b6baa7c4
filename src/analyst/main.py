# src/analyst/main.py
import asyncio

import structlog
from dotenv import load_dotenv

from analyst.alerts.formatting import format_alert_pretty
from analyst.alerts.notifiers import ConsoleNotifier
from analyst.config import AnalystConfig, config_from_env
from analyst.ingest.binance_rest import BinanceRestSource
from analyst.ingest.simulated import SimulatedTickSource
from analyst.notify.telegram import TelegramNotifier, telegram_config_from_env
from analyst.session import AnalysisSession

load_dotenv()
log = structlog.get_logger()


def build_source(cfg: AnalystConfig):
    if cfg.source == "binance":
        return BinanceRestSource(cfg.binance_config())
    return SimulatedTickSource(cfg.simulator_config())


async def status_printer(session: AnalysisSession, every_s: float):
    """Log the display snapshot once per cycle."""
    while True:
        await asyncio.sleep(every_s)
        snap = session.snapshot()
        px = f"{snap.current_price:.2f}" if snap.current_price is not None else "---"
        log.info("status", status=snap.status, price=px, alerts=len(snap.alerts))


async def main():
    cfg = config_from_env()
    source = build_source(cfg)

    q_alerts: asyncio.Queue = asyncio.Queue(maxsize=200)
    session = AnalysisSession(source, cfg=cfg.session_config(), q_alerts=q_alerts)

    def fmt(a):
        return format_alert_pretty(a, cfg.tz_name)

    console_notifier = ConsoleNotifier(format_fn=fmt)

    # Optional Telegram (built from env). If not configured, we skip it.
    tg_notifier = None
    tg_queue = None
    try:
        tg_cfg = telegram_config_from_env()
        tg_queue = asyncio.Queue(maxsize=200)
        tg_notifier = TelegramNotifier(cfg=tg_cfg, alerts_queue=tg_queue, format_fn=fmt)
        log.info("telegram_enabled")
    except RuntimeError:
        log.info("telegram_disabled_missing_env")

    async def notifier_router_loop():
        """Always print; forward to Telegram when configured (drop if full)."""
        while True:
            alert = await q_alerts.get()
            await console_notifier.send(alert)
            if tg_queue is not None:
                try:
                    tg_queue.put_nowait(alert)
                except asyncio.QueueFull:
                    log.warning("telegram_queue_full_drop", id=alert.id)

    log.info("analyst_starting", asset=cfg.asset, source=cfg.source, interval_s=cfg.interval_s)
    await session.start()
    if tg_notifier is not None:
        await tg_notifier.start()

    try:
        await asyncio.gather(
            notifier_router_loop(),
            status_printer(session, cfg.interval_s),
        )
    finally:
        await session.stop()
        if tg_notifier is not None:
            await tg_notifier.stop()
        if isinstance(source, BinanceRestSource):
            await source.stop()


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
