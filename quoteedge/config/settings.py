from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Tuple, TypeVar

from quoteedge.config import constants
from quoteedge.utils.logging import get_logger


logger = get_logger("settings")

T = TypeVar("T")


def _env_override(name: str, default: T, cast: Callable[[str], T]) -> T:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a valid %s, keeping %r", name, raw, cast.__name__, default)
        return default


@dataclass
class EfficiencyTiers:
    # absolute vig percent bounds
    excellent: float = 0.5
    good: float = 2.0
    fair: float = 5.0


@dataclass
class ArbitrageConfig:
    margin_threshold: float = constants.DEFAULT_ARB_MARGIN
    min_profit_percent: float = 0.0
    max_results: int = constants.DEFAULT_MAX_RESULTS


@dataclass
class ValueConfig:
    min_edge_percent: float = constants.DEFAULT_MIN_EDGE_PERCENT
    high_min_sources: int = 10
    high_min_edge: float = 5.0
    medium_min_sources: int = 5
    medium_min_edge: float = 3.0
    min_venue_gap: float = constants.DEFAULT_MIN_VENUE_GAP


@dataclass
class LiquidityConfig:
    standard_size_usd: float = constants.STANDARD_SIZE_USD
    small_size_usd: float = constants.SMALL_SIZE_USD
    whale_sizes: Tuple[float, ...] = constants.WHALE_SIZES_USD
    # (max slippage % at standard size, max spread) per tier
    excellent: Tuple[float, float] = (2.0, 0.02)
    good: Tuple[float, float] = (5.0, 0.03)
    moderate: Tuple[float, float] = (10.0, 0.05)
    # max slippage % at small size
    poor_small_slippage: float = 20.0
    wide_spread: float = constants.WIDE_SPREAD


@dataclass
class FetchConfig:
    concurrency: int = constants.FETCH_BATCH_WIDTH


@dataclass
class Settings:
    efficiency: EfficiencyTiers = field(default_factory=EfficiencyTiers)
    arbitrage: ArbitrageConfig = field(default_factory=ArbitrageConfig)
    value: ValueConfig = field(default_factory=ValueConfig)
    liquidity: LiquidityConfig = field(default_factory=LiquidityConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    env: str = "dev"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings with overrides from ``QUOTEEDGE_*`` environment variables."""
        s = cls()
        s.env = os.environ.get("QUOTEEDGE_ENV", s.env)
        s.arbitrage.margin_threshold = _env_override("QUOTEEDGE_ARB_MARGIN", s.arbitrage.margin_threshold, float)
        s.arbitrage.min_profit_percent = _env_override("QUOTEEDGE_MIN_PROFIT", s.arbitrage.min_profit_percent, float)
        s.arbitrage.max_results = _env_override("QUOTEEDGE_MAX_RESULTS", s.arbitrage.max_results, int)
        s.value.min_edge_percent = _env_override("QUOTEEDGE_MIN_EDGE", s.value.min_edge_percent, float)
        s.liquidity.standard_size_usd = _env_override("QUOTEEDGE_STANDARD_SIZE", s.liquidity.standard_size_usd, float)
        s.fetch.concurrency = _env_override("QUOTEEDGE_FETCH_CONCURRENCY", s.fetch.concurrency, int)
        return s


settings = Settings.from_env()
