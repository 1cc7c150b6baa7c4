from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

from analyst.alerts.evaluator import EvaluatorConfig
from analyst.ingest.binance_rest import BinanceConfig
from analyst.ingest.simulated import SimulatorConfig
from analyst.session import SessionConfig

SourceKind = Literal["simulated", "binance"]


@dataclass(slots=True)
class AnalystConfig:
    asset: str = "BTC/USDT"           # display label on alerts
    symbol: str = "BTCUSDT"           # exchange symbol for the REST source
    source: SourceKind = "simulated"
    interval_s: float = 5.0
    window_capacity: int = 100
    seed: Optional[int] = None
    binance_url: str = "https://api.binance.com"
    tz_name: str = "UTC"

    def session_config(self) -> SessionConfig:
        return SessionConfig(
            interval_s=self.interval_s,
            window_capacity=self.window_capacity,
            evaluator=EvaluatorConfig(asset=self.asset),
        )

    def simulator_config(self) -> SimulatorConfig:
        return SimulatorConfig(seed=self.seed)

    def binance_config(self) -> BinanceConfig:
        return BinanceConfig(base_url=self.binance_url, symbol=self.symbol)


def config_from_env() -> AnalystConfig:
    """Read ANALYST_* / BINANCE_* variables; unset ones keep their defaults."""
    d = AnalystConfig()
    source = os.getenv("ANALYST_SOURCE", d.source).strip().lower()
    if source not in ("simulated", "binance"):
        raise ValueError(f"ANALYST_SOURCE must be 'simulated' or 'binance', got {source!r}")
    seed = os.getenv("ANALYST_SEED")
    return AnalystConfig(
        asset=os.getenv("ANALYST_ASSET", d.asset),
        symbol=os.getenv("ANALYST_SYMBOL", d.symbol).strip().upper(),
        source=source,
        interval_s=float(os.getenv("ANALYST_INTERVAL_S", d.interval_s)),
        window_capacity=int(os.getenv("ANALYST_WINDOW", d.window_capacity)),
        seed=int(seed) if seed else None,
        binance_url=os.getenv("BINANCE_REST_URL", d.binance_url),
        tz_name=os.getenv("ANALYST_TZ", d.tz_name),
    )
