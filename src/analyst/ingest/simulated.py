from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from analyst.utils.time import utc_now_s
from analyst.utils.types import Tick


@dataclass(slots=True)
class SimulatorConfig:
    base_price: float = 43_000.0
    swing_amplitude: float = 500.0    # slow sinusoidal drift
    swing_period_s: float = 10.0      # sin(t / period)
    min_noise: float = 50.0           # noise band width, uniform in [min, min + extra]
    extra_noise: float = 100.0
    spread_frac: float = 0.0001       # 1 bp
    min_volume: float = 500.0
    extra_volume: float = 1_000.0
    max_wick: float = 20.0            # intra-cycle high/low excursion
    seed: Optional[int] = None


class SimulatedTickSource:
    """
    Demo feed: a sinusoid around base_price plus uniform noise, with a fixed
    relative spread and random volume and wicks. Deterministic for a given
    seed and clock.
    """
    def __init__(self, cfg: Optional[SimulatorConfig] = None, clock: Callable[[], float] = utc_now_s):
        self.cfg = cfg or SimulatorConfig()
        self._clock = clock
        self._rng = np.random.default_rng(self.cfg.seed)

    def next_tick(self) -> Tick:
        c = self.cfg
        ts = float(self._clock())
        base = c.base_price + math.sin(ts / c.swing_period_s) * c.swing_amplitude
        u = self._rng.random(5)
        band = c.min_noise + u[0] * c.extra_noise
        price = base + (u[1] - 0.5) * band
        spread = price * c.spread_frac
        return Tick(
            timestamp=ts,
            price=price,
            bid=price - spread / 2.0,
            ask=price + spread / 2.0,
            volume=c.min_volume + u[2] * c.extra_volume,
            high=price + u[3] * c.max_wick,
            low=price - u[4] * c.max_wick,
        )

    async def fetch(self) -> Tick:
        return self.next_tick()
