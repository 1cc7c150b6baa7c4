from __future__ import annotations
from typing import Any, Sequence

from analyst.utils.errors import FetchError
from analyst.utils.types import Tick

def parse_market_snapshot(book: dict, kline: Sequence[Any], ts: float) -> Tick:
    """
    Build a Tick from a Binance-style book ticker and the latest kline row.

      book:  {"symbol": "BTCUSDT", "bidPrice": "43000.10", "bidQty": "...",
              "askPrice": "43000.20", "askQty": "..."}
      kline: [open_time_ms, "open", "high", "low", "close", "volume", close_time_ms, ...]

    Price is the kline close; high/low/volume are the kline's (the cycle's
    intra-bar extremes). The high/low are widened to include the close, since
    the two payloads are not fetched atomically.
    """
    try:
        bid = float(book["bidPrice"])
        ask = float(book["askPrice"])
        high = float(kline[2])
        low = float(kline[3])
        px = float(kline[4])
        vol = float(kline[5])
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise FetchError(f"malformed market payload: {e}") from e

    return Tick(
        timestamp=float(ts),
        price=px,
        bid=bid,
        ask=ask,
        volume=vol,
        high=max(high, px),
        low=min(low, px),
    )
