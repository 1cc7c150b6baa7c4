from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Optional

import aiohttp
import structlog

from analyst.ingest.parser import parse_market_snapshot
from analyst.utils.errors import FetchError
from analyst.utils.time import utc_now_s
from analyst.utils.types import Tick


@dataclass(slots=True)
class BinanceConfig:
    base_url: str = "https://api.binance.com"
    symbol: str = "BTCUSDT"
    kline_interval: str = "1m"
    timeout_s: float = 4.0   # keep well under the cycle interval


class BinanceRestSource:
    """
    Polling tick source for a Binance-compatible REST API.

    Each fetch() issues two GETs concurrently (best bid/ask and the newest
    kline) and folds them into one Tick. Any HTTP, network or payload problem
    surfaces as FetchError; retrying is left to the session's next cycle.

    Usage:
        src = BinanceRestSource(BinanceConfig(symbol="BTCUSDT"))
        await src.start()
        tick = await src.fetch()
        await src.stop()
    """
    def __init__(self, cfg: Optional[BinanceConfig] = None, clock: Callable[[], float] = utc_now_s):
        self.cfg = cfg or BinanceConfig()
        self._clock = clock
        self._session: Optional[aiohttp.ClientSession] = None
        self._log = structlog.get_logger("binance_rest")

    async def start(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.cfg.timeout_s)
            self._session = aiohttp.ClientSession(base_url=self.cfg.base_url, timeout=timeout)

    async def stop(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def _get_json(self, path: str, params: dict):
        assert self._session is not None
        async with self._session.get(path, params=params) as resp:
            if resp.status != 200:
                raise FetchError(f"GET {path} -> HTTP {resp.status}")
            return await resp.json()

    async def fetch(self) -> Tick:
        if self._session is None:
            await self.start()
        try:
            book, klines = await asyncio.gather(
                self._get_json("/api/v3/ticker/bookTicker", {"symbol": self.cfg.symbol}),
                self._get_json(
                    "/api/v3/klines",
                    {"symbol": self.cfg.symbol, "interval": self.cfg.kline_interval, "limit": 1},
                ),
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self._log.warning("binance_fetch_error", err=str(e), symbol=self.cfg.symbol)
            raise FetchError(str(e)) from e

        if not klines:
            raise FetchError("empty kline response")
        return parse_market_snapshot(book, klines[-1], self._clock())
