"""Core data models for quotes, books and analytics results.

Every record here is a point-in-time snapshot: built fresh per call, frozen,
never persisted. All result records expose `to_dict()` so a service layer can
serialize them directly.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple

Origin = Literal["direct", "synthetic"]
BookView = Literal["merged", "raw"]
Side = Literal["sell", "buy"]
Confidence = Literal["high", "medium", "low"]


class PriceConvention(str, Enum):
    DECIMAL = "decimal"          # bookmaker decimal odds, payout per unit staked
    AMERICAN = "american"        # moneyline odds, +150 / -200
    PROBABILITY = "probability"  # prediction-market token price in (0, 1)


class _Serializable:
    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class RawQuote(_Serializable):
    """An already-parsed but unvalidated quote handed over by a retrieval layer."""
    outcome_id: str
    source_id: str
    price: float
    size_usd: Optional[float] = None


@dataclass(frozen=True)
class Quote(_Serializable):
    outcome_id: str
    source_id: str
    implied_probability: float
    raw_price: float
    convention: PriceConvention = PriceConvention.DECIMAL
    size_usd: Optional[float] = None

    @property
    def decimal_odds(self) -> float:
        """Payout per unit staked, whatever convention the quote came in."""
        return 1.0 / self.implied_probability

    def to_dict(self) -> dict:
        data = asdict(self)
        data["convention"] = self.convention.value
        return data


@dataclass(frozen=True)
class OutcomeSet:
    """Quotes for one event grouped by outcome, in first-seen outcome order."""
    event_id: str
    outcomes: Dict[str, Tuple[Quote, ...]] = field(default_factory=dict)

    @property
    def outcome_ids(self) -> List[str]:
        return list(self.outcomes.keys())

    @property
    def quotes(self) -> List[Quote]:
        return [q for qs in self.outcomes.values() for q in qs]

    @property
    def source_ids(self) -> List[str]:
        seen: Dict[str, None] = {}
        for q in self.quotes:
            seen.setdefault(q.source_id, None)
        return list(seen)


@dataclass(frozen=True)
class SourceEfficiency(_Serializable):
    source_id: str
    total_implied_probability: float
    vig_percent: float
    efficiency: str
    outcomes_quoted: int
    complete: bool  # quotes every outcome of the event


@dataclass(frozen=True)
class EfficiencySummary(_Serializable):
    per_source: List[SourceEfficiency]
    consensus: Dict[str, float]
    lowest_vig_source_id: Optional[str]
    average_vig_percent: Optional[float]
    insufficient_data: List[str]  # outcome ids with no quotes
    status: str
    recommendation: str


@dataclass(frozen=True)
class BinaryEfficiency(_Serializable):
    sum_of_prices: float
    vig: float
    vig_bps: float
    efficiency: str
    is_efficient: bool
    true_probabilities: Dict[str, float]
    recommendation: str


@dataclass(frozen=True)
class ArbitrageLeg(_Serializable):
    outcome_id: str
    source_id: str
    price: float  # decimal odds
    implied_probability: float
    stake_percent: float
    size_usd: Optional[float] = None


@dataclass(frozen=True)
class ArbitrageOpportunity(_Serializable):
    legs: List[ArbitrageLeg]
    total_implied_probability: float
    profit_percent: float
    event_id: Optional[str] = None

    @property
    def available_size_usd(self) -> Optional[float]:
        sizes = [leg.size_usd for leg in self.legs]
        if any(s is None for s in sizes):
            return None
        return float(sum(sizes))

    @property
    def outcome_ids(self) -> Tuple[str, ...]:
        return tuple(leg.outcome_id for leg in self.legs)


@dataclass(frozen=True)
class ArbitrageScan(_Serializable):
    opportunities: List[ArbitrageOpportunity]
    reason: str
    events_analyzed: int
    quotes_scanned: int
    recommendation: str


@dataclass(frozen=True)
class BinaryArbitrage(_Serializable):
    """Buy YES and NO for less than 1.0 combined; edge is profit per $1 payout."""
    yes_ask: float
    no_ask: float
    total_cost: float
    edge: float
    market_id: Optional[str] = None
    available_size: Optional[float] = None

    @property
    def edge_percent(self) -> float:
        return self.edge * 100.0

    @property
    def note(self) -> str:
        return (
            f"BUY YES @ {self.yes_ask * 100:.1f}c + BUY NO @ {self.no_ask * 100:.1f}c = "
            f"{self.total_cost * 100:.1f}c. Guaranteed {self.edge * 100:.1f}c profit per $1."
        )


@dataclass(frozen=True)
class BinaryMarketScan(_Serializable):
    market_id: str
    best_yes_ask: Optional[float]
    best_yes_bid: Optional[float]
    best_no_ask: Optional[float]
    spread: Optional[float]
    arbitrage: Optional[BinaryArbitrage]
    view: BookView


@dataclass(frozen=True)
class BinaryScanSummary(_Serializable):
    markets_analyzed: int
    opportunities: List[BinaryArbitrage]
    wide_spread_markets: List[BinaryMarketScan]
    average_spread_cents: float
    reason: str


@dataclass(frozen=True)
class ValueFlag(_Serializable):
    outcome_id: str
    source_id: str
    price: float
    implied_probability: float
    consensus_probability: float
    edge_percent: float
    confidence: Confidence
    source_count: int


@dataclass(frozen=True)
class VenueGap(_Serializable):
    outcome_id: str
    consensus_probability: float
    venue_price: float
    gap: float  # venue price minus consensus, in probability points

    @property
    def cheaper_venue(self) -> str:
        return "prediction-market" if self.gap < 0 else "bookmakers"


@dataclass(frozen=True)
class OrderLevel(_Serializable):
    """A single level in an order book."""
    price: float
    size: float
    origin: Origin = "direct"

    @property
    def value_usd(self) -> float:
        return self.price * self.size


@dataclass(frozen=True)
class RawBook:
    """Unvalidated bids/asks for one token as `(price, size)` pairs or mappings."""
    bids: Tuple = ()
    asks: Tuple = ()


@dataclass(frozen=True)
class MergedBook(_Serializable):
    bids: List[OrderLevel]  # non-increasing price
    asks: List[OrderLevel]  # non-decreasing price
    view: BookView = "merged"
    note: Optional[str] = None

    @property
    def best_bid(self) -> Optional[float]:
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> Optional[float]:
        return self.asks[0].price if self.asks else None

    @property
    def mid_price(self) -> Optional[float]:
        if self.best_bid is not None and self.best_ask is not None:
            return (self.best_bid + self.best_ask) / 2
        return self.best_bid if self.best_bid is not None else self.best_ask

    @property
    def spread(self) -> Optional[float]:
        if self.best_bid is not None and self.best_ask is not None:
            return self.best_ask - self.best_bid
        return None


@dataclass(frozen=True)
class FillSimulation(_Serializable):
    requested_usd: float
    filled_usd: float
    shares_filled: float
    avg_price: float
    worst_price: float
    slippage_percent: float
    can_fill: bool
    levels_consumed: int
    side: Side = "sell"
    status: str = "ok"


@dataclass(frozen=True)
class LiquidityReport(_Serializable):
    reference_price: float
    best_bid: float
    best_ask: float
    spread: float
    spread_bps: float
    bid_depth_usd: float
    ask_depth_usd: float
    whale_cost: Dict[str, FillSimulation]
    score: str
    recommendation: str
    view: BookView
    note: Optional[str] = None
    # fraction of each side's USD depth that comes from the complement token
    synthetic_bid_share: float = 0.0
    synthetic_ask_share: float = 0.0

    @property
    def total_depth_usd(self) -> float:
        return self.bid_depth_usd + self.ask_depth_usd
