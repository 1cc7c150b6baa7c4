from __future__ import annotations

import numpy as np
from dataclasses import dataclass

from analyst.utils.types import Tick

FIELDS = ("timestamp", "price", "bid", "ask", "volume", "high", "low")

class RingView:
    """
    Zero-copy view of last N ticks.
    - If the buffer hasn't wrapped, slices is [segment].
    - If it has wrapped, slices is [segment1, segment2] in time order.
    Each segment is a tuple of arrays in FIELDS order.
    """
    __slots__ = ("slices", "length")
    def __init__(self, slices: list[tuple[np.ndarray, ...]] | None, length: int):
        self.slices = slices or []
        self.length = length

@dataclass(slots=True, frozen=True)
class TickWindow:
    """
    Chronological, read-only copy of the buffered ticks as contiguous arrays.
    Index -1 is the newest tick.
    """
    timestamp: np.ndarray
    price: np.ndarray
    bid: np.ndarray
    ask: np.ndarray
    volume: np.ndarray
    high: np.ndarray
    low: np.ndarray

    def __len__(self) -> int:
        return int(self.price.size)

    def tick(self, i: int) -> Tick:
        return Tick(
            timestamp=float(self.timestamp[i]),
            price=float(self.price[i]),
            bid=float(self.bid[i]),
            ask=float(self.ask[i]),
            volume=float(self.volume[i]),
            high=float(self.high[i]),
            low=float(self.low[i]),
        )

    def last(self, n: int) -> "TickWindow":
        """The newest n ticks (all of them if fewer are held)."""
        n = max(0, min(int(n), len(self)))
        start = len(self) - n
        return TickWindow(*(getattr(self, f)[start:] for f in FIELDS))

    @classmethod
    def empty(cls) -> "TickWindow":
        return cls(*(np.empty(0, dtype=np.float64) for _ in FIELDS))

class RingBufferTicks:
    """
    Fixed-size circular buffer of ticks for one instrument.
    Arrays: timestamp, price, bid, ask, volume, high, low [float64].
    Only the session driver appends; everything else reads snapshots.
    """
    __slots__ = ("capacity", "size", "head", "timestamp", "price", "bid", "ask", "volume", "high", "low")
    def __init__(self, capacity: int):
        self.capacity = int(capacity)
        if self.capacity <= 0:
            raise ValueError("capacity must be positive")
        self.size = 0
        self.head = 0  # next write index
        for f in FIELDS:
            setattr(self, f, np.empty(self.capacity, dtype=np.float64))

    def __len__(self) -> int:
        return self.size

    def append(self, tick: Tick) -> None:
        i = self.head
        self.timestamp[i] = tick.timestamp
        self.price[i] = tick.price
        self.bid[i] = tick.bid
        self.ask[i] = tick.ask
        self.volume[i] = tick.volume
        self.high[i] = tick.high
        self.low[i] = tick.low
        self.head = (i + 1) % self.capacity
        if self.size < self.capacity:
            self.size += 1

    def last_ts(self) -> float | None:
        if self.size == 0:
            return None
        idx = (self.head - 1) % self.capacity
        return float(self.timestamp[idx])

    def _segment(self, sl: slice) -> tuple[np.ndarray, ...]:
        return tuple(getattr(self, f)[sl] for f in FIELDS)

    def view_last(self, n: int) -> RingView:
        """
        Return up to last n ticks as zero-copy slices in time order.
        """
        if self.size == 0:
            return RingView([], 0)
        n = int(n)
        if n <= 0:
            return RingView([], 0)
        n = min(n, self.size)

        end = self.head if self.head != 0 else self.capacity  # exclusive
        start = end - n
        if start >= 0:
            return RingView([self._segment(slice(start, end))], n)
        # wrapped: [cap+start..cap) + [0..end)
        return RingView(
            [self._segment(slice(self.capacity + start, self.capacity)), self._segment(slice(0, end))],
            n,
        )

    def snapshot(self) -> TickWindow:
        """Copy the buffered ticks into one chronological TickWindow."""
        view = self.view_last(self.size)
        if view.length == 0:
            return TickWindow.empty()
        cols = zip(*view.slices)
        return TickWindow(*(np.concatenate(parts).astype(np.float64) for parts in cols))
