# src/analyst/session.py
from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

import structlog

from analyst.alerts.evaluator import AlertEvaluator, EvaluatorConfig
from analyst.alerts.formatting import format_status
from analyst.analysis.regime import RegimeConfig, classify_regime
from analyst.analysis.state import AnalysisState
from analyst.analysis.structure import StructureConfig, detect_structure
from analyst.data.ring_buffer import RingBufferTicks
from analyst.ingest.source import TickSource, validate_tick
from analyst.utils.errors import FetchError, InvalidTick
from analyst.utils.types import Alert, DisplaySnapshot, Tick

STATUS_INITIAL = "Initializing..."
STATUS_FETCH_ERROR = "Error fetching data"


@dataclass(slots=True)
class SessionConfig:
    interval_s: float = 5.0
    window_capacity: int = 100
    alert_history: int = 20
    chart_points: int = 50
    structure: StructureConfig = field(default_factory=StructureConfig)
    regime: RegimeConfig = field(default_factory=RegimeConfig)
    evaluator: EvaluatorConfig = field(default_factory=EvaluatorConfig)


class AnalysisSession:
    """
    Drives the analysis pipeline for one instrument.

    Lifecycle:
      - start() launches one loop task; every interval it awaits
        source.fetch() and then runs the pipeline synchronously:
          validate -> buffer.append -> structure -> regime -> alerts
      - stop() cancels the loop. Cancellation can only land on the fetch or
        on the wait between cycles, so a cycle is never half applied.
      - start() again resumes with the same window and state.

    Each cycle works on a copy of the state and commits it at the end. A
    failed or rejected fetch leaves window and state exactly as they were.

    Alerts are kept in a bounded history (newest first) and, when q_alerts
    is given, pushed to it without blocking.
    """

    def __init__(
        self,
        source: TickSource,
        cfg: Optional[SessionConfig] = None,
        q_alerts: Optional[asyncio.Queue] = None,
        state: Optional[AnalysisState] = None,
    ):
        self.source = source
        self.cfg = cfg or SessionConfig()
        self.q_alerts = q_alerts
        self._buffer = RingBufferTicks(self.cfg.window_capacity)
        self._state = state.copy() if state is not None else AnalysisState()
        self._evaluator = AlertEvaluator(self.cfg.evaluator)
        self._alerts: deque[Alert] = deque(maxlen=self.cfg.alert_history)
        self._status = STATUS_INITIAL
        self._current_price: Optional[float] = None
        self._log = structlog.get_logger("session")
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    # ---------------------------- public API ---------------------------- #

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def state(self) -> AnalysisState:
        """A copy; the session keeps sole ownership of the live state."""
        return self._state.copy()

    @property
    def status(self) -> str:
        return self._status

    def export_state(self) -> dict:
        return self._state.to_dict()

    def restore_state(self, state: AnalysisState | dict) -> None:
        if isinstance(state, dict):
            state = AnalysisState.from_dict(state)
        self._state = state.copy()

    async def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._loop(), name="analysis-session")
        self._log.info("session_started", interval_s=self.cfg.interval_s, ticks=len(self._buffer))

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                self._log.warning("session_task_error", err=str(e), kind=type(e).__name__)
            self._task = None
        self._log.info("session_stopped", ticks=len(self._buffer))

    def snapshot(self) -> DisplaySnapshot:
        view = self._buffer.snapshot().last(self.cfg.chart_points)
        chart = [(float(t), float(p)) for t, p in zip(view.timestamp, view.price)]
        return DisplaySnapshot(
            current_price=self._current_price,
            status=self._status,
            alerts=list(self._alerts),
            chart=chart,
            running=self.running,
        )

    # --------------------------- core internals ------------------------- #

    async def _loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_due = loop.time()
        try:
            while not self._stop.is_set():
                await self._wait_until(next_due)
                if self._stop.is_set():
                    break
                next_due = loop.time() + self.cfg.interval_s
                try:
                    await self.run_cycle()
                except Exception as e:
                    # keep the loop alive; the committed state was never touched
                    self._fetch_failed(e)
        except asyncio.CancelledError:
            return

    async def _wait_until(self, due: float) -> None:
        delay = due - asyncio.get_running_loop().time()
        if delay <= 0:
            return  # overran: run the next cycle right away
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def run_cycle(self) -> Optional[Alert]:
        """Fetch one tick and process it. Fetch problems skip the cycle."""
        try:
            tick = await self.source.fetch()
        except FetchError as e:
            self._fetch_failed(e)
            return None
        except (OSError, ValueError, KeyError, TypeError) as e:
            # sources are collaborators; an unexpected failure still only skips the cycle
            self._fetch_failed(e)
            return None
        try:
            return self.process_tick(tick)
        except InvalidTick as e:
            self._status = STATUS_FETCH_ERROR
            self._log.warning("tick_rejected", err=str(e), ts=tick.timestamp)
            return None
        except FetchError as e:
            self._fetch_failed(e)
            return None

    def _fetch_failed(self, err: Exception) -> None:
        self._status = STATUS_FETCH_ERROR
        self._log.warning("tick_fetch_failed", err=str(err), kind=type(err).__name__)

    def process_tick(self, tick: Tick) -> Optional[Alert]:
        """
        Run one full cycle on `tick`. Raises InvalidTick (a FetchError) before
        touching anything if the tick is unusable.
        """
        validate_tick(tick, self._buffer.last_ts())

        self._buffer.append(tick)
        window = self._buffer.snapshot()

        state = self._state.copy()
        detect_structure(window, state, self.cfg.structure)
        classify_regime(window, state, self.cfg.regime)
        alert = self._evaluator.evaluate(window, state, now=tick.timestamp)

        # commit
        self._state = state
        self._current_price = tick.price
        self._status = format_status(state.regime, state.bias)
        if alert is not None:
            self._alerts.appendleft(alert)
            self._emit(alert)
        return alert

    def _emit(self, alert: Alert) -> None:
        self._log.info("alert_emitted", id=alert.id, rule=alert.rule, bias=alert.bias,
                       probability=alert.probability)
        if self.q_alerts is None:
            return
        try:
            self.q_alerts.put_nowait(alert)
        except asyncio.QueueFull:
            self._log.warning("alert_queue_full_drop", id=alert.id)
