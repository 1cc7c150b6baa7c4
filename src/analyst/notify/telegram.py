from __future__ import annotations

import asyncio
import os
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

import aiohttp
import structlog

from analyst.utils.types import Alert

log = structlog.get_logger("telegram")

# --------- small rate limiter (token bucket) ----------

class RateLimiter:
    def __init__(self, rate_per_sec: float, burst: int = 1):
        self.rate = float(rate_per_sec)
        self.capacity = int(burst)
        self.tokens = float(burst)
        self.updated = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self):
        async with self._lock:
            now = time.monotonic()
            # refill
            self.tokens = min(self.capacity, self.tokens + (now - self.updated) * self.rate)
            self.updated = now
            # wait if no token
            if self.tokens < 1.0:
                needed = 1.0 - self.tokens
                await asyncio.sleep(needed / self.rate)
                self.updated = time.monotonic()
                self.tokens = 1.0
            self.tokens -= 1.0

# --------- config & client ----------

@dataclass(slots=True)
class TelegramConfig:
    bot_token: str
    chat_id: str                # personal chat id or group id
    parse_mode: Optional[str] = None  # "HTML" or "MarkdownV2" or None
    api_base: str = "https://api.telegram.org"
    timeout_s: float = 8.0
    per_chat_rate_per_sec: float = 1.0
    per_chat_burst: int = 3
    max_retries: int = 5
    initial_backoff_s: float = 0.5
    max_backoff_s: float = 8.0

def telegram_config_from_env() -> TelegramConfig:
    """Raises RuntimeError when the bot token or chat id is not configured."""
    token = os.getenv("TELEGRAM_BOT_TOKEN")
    chat_id = os.getenv("TELEGRAM_CHAT_ID")
    if not token or not chat_id:
        raise RuntimeError("TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID must be set")
    return TelegramConfig(bot_token=token, chat_id=chat_id)

class TelegramNotifier:
    """
    Background worker that drains an alert queue and sends to Telegram with
    rate limiting and retry w/ backoff.
    """
    def __init__(self, cfg: TelegramConfig, alerts_queue: asyncio.Queue,
                 format_fn: Optional[Callable[[Alert], str]] = None):
        self.cfg = cfg
        self.q = alerts_queue
        self._session: Optional[aiohttp.ClientSession] = None
        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()
        self._rl = RateLimiter(rate_per_sec=cfg.per_chat_rate_per_sec, burst=cfg.per_chat_burst)
        self._format_fn = format_fn or self._default_format

    async def start(self):
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.cfg.timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
        self._stop.clear()
        self._task = asyncio.create_task(self._loop(), name="telegram-notifier")

    async def stop(self):
        self._stop.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._session:
            await self._session.close()
            self._session = None

    async def _loop(self):
        assert self._session is not None
        try:
            while not self._stop.is_set():
                alert = await self.q.get()
                text = self._format_fn(alert)
                await self._rl.acquire()
                await self.send_text(text)
        except asyncio.CancelledError:
            return

    async def send_text(self, text: str) -> bool:
        """POST one message. Returns True on success, False once retries are exhausted."""
        assert self._session is not None
        url = f"{self.cfg.api_base}/bot{self.cfg.bot_token}/sendMessage"
        payload = {"chat_id": self.cfg.chat_id, "text": text}
        if self.cfg.parse_mode:
            payload["parse_mode"] = self.cfg.parse_mode

        backoff = self.cfg.initial_backoff_s
        for attempt in range(1, self.cfg.max_retries + 1):
            try:
                async with self._session.post(url, data=payload) as resp:
                    if resp.status == 200:
                        return True
                    detail = await _maybe_text(resp)
                    log.warning("telegram_send_failed", status=resp.status, body=detail, attempt=attempt)
                    if resp.status == 429:
                        # Telegram may include retry_after (seconds)
                        try:
                            data = await resp.json()
                            ra = data.get("parameters", {}).get("retry_after")
                            if ra:
                                await asyncio.sleep(float(ra))
                                continue
                        except (aiohttp.ContentTypeError, ValueError):
                            pass
                    if 500 <= resp.status < 600 or resp.status == 429:
                        await asyncio.sleep(self._jitter(backoff))
                        backoff = min(backoff * 2.0, self.cfg.max_backoff_s)
                        continue
                    # other 4xx: don't retry
                    return False
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                log.warning("telegram_network_error", err=str(e), attempt=attempt)
                await asyncio.sleep(self._jitter(backoff))
                backoff = min(backoff * 2.0, self.cfg.max_backoff_s)
        log.error("telegram_give_up_after_retries")
        return False

    @staticmethod
    def _jitter(base: float) -> float:
        return base * (0.8 + 0.4 * random.random())

    @staticmethod
    def _default_format(alert: Alert) -> str:
        return (
            f"[{alert.asset}] {alert.event}\n"
            f"bias {alert.bias} | trigger {alert.trigger_level:.2f} | "
            f"invalidation {alert.invalidation_level:.2f} | {alert.probability}%\n"
            f"{alert.risk_note}"
        )

async def _maybe_text(resp: aiohttp.ClientResponse) -> str:
    try:
        return await resp.text()
    except (aiohttp.ClientError, UnicodeDecodeError):
        return "<no body>"
