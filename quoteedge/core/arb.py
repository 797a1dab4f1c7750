"""Arbitrage detection algorithms.

This module contains the core logic for detecting riskless arbitrage. It includes:
- Bookmaker arbitrage: back every outcome at its best price when the implied
  probabilities sum below 1, with stakes sized for an identical payout
- Binary prediction-market arbitrage: buy YES and NO when the best asks sum below 1
- Batch scanning and ranking across many events/markets
The margin threshold absorbs quote staleness and slippage; it is configuration,
not a fixed contract.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence

from quoteedge.config import constants
from quoteedge.config.settings import settings
from quoteedge.core.models import (
    ArbitrageLeg,
    ArbitrageOpportunity,
    ArbitrageScan,
    BinaryArbitrage,
    BinaryMarketScan,
    BinaryScanSummary,
    Quote,
    RawBook,
)
from quoteedge.core.orderbook import merge_books
from quoteedge.utils.logging import get_logger
from quoteedge.utils.validation import ValidationError, validate_margin, validate_number


logger = get_logger("arb")


def _margin(margin_threshold: Optional[float]) -> float:
    if margin_threshold is None:
        margin_threshold = settings.arbitrage.margin_threshold
    return validate_margin(margin_threshold)


def best_quotes_per_outcome(quotes: Iterable[Quote]) -> List[Quote]:
    """Pick, for every outcome, the cheapest quote to back (highest payout).

    Ties go to the larger quoted size, then to the lexically smaller source id.
    Outcomes keep their first-seen order.
    """
    best: dict[str, Quote] = {}

    def rank(q: Quote):
        return (q.implied_probability, -(q.size_usd or 0.0), q.source_id)

    for q in quotes:
        current = best.get(q.outcome_id)
        if current is None or rank(q) < rank(current):
            best[q.outcome_id] = q
    return list(best.values())


def detect_arbitrage(
    best_quotes: Sequence[Quote],
    margin_threshold: Optional[float] = None,
    event_id: Optional[str] = None,
) -> Optional[ArbitrageOpportunity]:
    """Check one basket of best quotes (one per outcome) for arbitrage.

    Flags an opportunity iff the implied probabilities sum below
    ``1 - margin_threshold``. Stake percentages are proportional to implied
    probability, so ``stake_i * decimal_odds_i`` is the same for every leg.

    Returns:
        The opportunity, or ``None`` when the basket is efficiently priced or
        covers fewer than two outcomes.

    Raises:
        ValidationError: If two quotes in the basket share an outcome id
    """
    margin = _margin(margin_threshold)
    basket = list(best_quotes)
    outcome_ids = [q.outcome_id for q in basket]
    if len(set(outcome_ids)) != len(outcome_ids):
        raise ValidationError(f"Arbitrage basket has duplicate outcomes: {outcome_ids}")
    if len(basket) < constants.MIN_OUTCOMES:
        return None

    total = float(sum(q.implied_probability for q in basket))
    if total >= 1.0 - margin:
        return None

    profit_percent = (1.0 / total - 1.0) * 100.0
    legs = [
        ArbitrageLeg(
            outcome_id=q.outcome_id,
            source_id=q.source_id,
            price=q.decimal_odds,
            implied_probability=q.implied_probability,
            stake_percent=q.implied_probability / total * 100.0,
            size_usd=q.size_usd,
        )
        for q in basket
    ]
    return ArbitrageOpportunity(
        legs=legs,
        total_implied_probability=total,
        profit_percent=profit_percent,
        event_id=event_id,
    )


def rank_opportunities(opportunities: Iterable[ArbitrageOpportunity]) -> List[ArbitrageOpportunity]:
    """Order by profit (desc), then available size (desc, when known), then outcome ids."""
    def key(opp: ArbitrageOpportunity):
        size = opp.available_size_usd
        return (-opp.profit_percent, -(size if size is not None else 0.0), opp.outcome_ids, opp.event_id or "")

    return sorted(opportunities, key=key)


def scan_arbitrage(
    events: Mapping[str, Sequence[Quote]],
    margin_threshold: Optional[float] = None,
    min_profit_percent: Optional[float] = None,
    max_results: Optional[int] = None,
) -> ArbitrageScan:
    """Scan many events, each given as all of its quotes, and rank what is found."""
    cfg = settings.arbitrage
    min_profit = cfg.min_profit_percent if min_profit_percent is None else min_profit_percent
    limit = cfg.max_results if max_results is None else max_results

    found: List[ArbitrageOpportunity] = []
    quotes_scanned = 0
    for event_id, quotes in events.items():
        quotes_scanned += len(quotes)
        opp = detect_arbitrage(best_quotes_per_outcome(quotes), margin_threshold, event_id=event_id)
        if opp is not None and opp.profit_percent >= min_profit:
            logger.info("Arbitrage on %s: %.2f%% profit", event_id, opp.profit_percent)
            found.append(opp)

    ranked = rank_opportunities(found)[:limit]
    if ranked:
        top = ranked[0]
        reason = f"found {len(ranked)} opportunities"
        recommendation = (
            f"Found {len(ranked)} arbitrage opportunities. Best: {top.profit_percent:.2f}% "
            f"guaranteed profit on {top.event_id}. Stake percentages give an equal payout."
        )
    else:
        reason = constants.NO_ARBITRAGE_REASON
        recommendation = (
            "No arbitrage opportunities met the minimum profit threshold. Markets are "
            "efficiently priced; lower the threshold or wait for line movements."
        )
    return ArbitrageScan(
        opportunities=ranked,
        reason=reason,
        events_analyzed=len(events),
        quotes_scanned=quotes_scanned,
        recommendation=recommendation,
    )


def detect_binary_arbitrage(
    yes_ask: float,
    no_ask: float,
    margin_threshold: Optional[float] = None,
    market_id: Optional[str] = None,
    available_size: Optional[float] = None,
) -> Optional[BinaryArbitrage]:
    """Buying both complementary tokens at their best asks pays exactly 1.0.

    Flags an opportunity when ``yes_ask + no_ask < 1 - margin_threshold``;
    the edge is ``1 - (yes_ask + no_ask)`` per $1 of payout.
    """
    margin = _margin(margin_threshold)
    yes_ask = validate_number(yes_ask, "yes_ask")
    no_ask = validate_number(no_ask, "no_ask")
    if not (0.0 < yes_ask < 1.0 and 0.0 < no_ask < 1.0):
        raise ValidationError(f"Asks must be in (0, 1), got {yes_ask} and {no_ask}")

    total_cost = yes_ask + no_ask
    if total_cost >= 1.0 - margin:
        return None
    return BinaryArbitrage(
        yes_ask=yes_ask,
        no_ask=no_ask,
        total_cost=total_cost,
        edge=1.0 - total_cost,
        market_id=market_id,
        available_size=available_size,
    )


def scan_binary_market(
    market_id: str,
    yes_book: RawBook,
    no_book: Optional[RawBook],
    margin_threshold: Optional[float] = None,
) -> BinaryMarketScan:
    """Check one YES/NO market using both tokens' merged books.

    YES asks include synthetic asks from NO bids and vice versa, so the check
    runs on the executable prices a taker would actually see.
    """
    yes_merged = merge_books(yes_book, no_book)
    no_merged = merge_books(no_book, yes_book) if no_book is not None else None

    best_yes_ask = yes_merged.best_ask
    best_no_ask = no_merged.best_ask if no_merged is not None else None

    arbitrage = None
    if best_yes_ask is not None and best_no_ask is not None:
        available = min(yes_merged.asks[0].size, no_merged.asks[0].size)
        arbitrage = detect_binary_arbitrage(
            best_yes_ask, best_no_ask, margin_threshold, market_id=market_id, available_size=available
        )
        if arbitrage is not None:
            logger.info("Binary arbitrage on %s: %s", market_id, arbitrage.note)

    return BinaryMarketScan(
        market_id=market_id,
        best_yes_ask=best_yes_ask,
        best_yes_bid=yes_merged.best_bid,
        best_no_ask=best_no_ask,
        spread=yes_merged.spread,
        arbitrage=arbitrage,
        view=yes_merged.view,
    )


def scan_binary_markets(
    markets: Mapping[str, tuple],
    margin_threshold: Optional[float] = None,
    max_results: Optional[int] = None,
    wide_spread: Optional[float] = None,
) -> BinaryScanSummary:
    """Scan ``{market_id: (yes_book, no_book)}`` for arbitrage and wide spreads.

    Markets without a best ask on both tokens are skipped and not counted as analyzed.
    """
    limit = settings.arbitrage.max_results if max_results is None else max_results
    wide = settings.liquidity.wide_spread if wide_spread is None else wide_spread

    scans: List[BinaryMarketScan] = []
    for market_id, (yes_book, no_book) in markets.items():
        scan = scan_binary_market(market_id, yes_book, no_book, margin_threshold)
        if scan.best_yes_ask is None or scan.best_no_ask is None:
            continue
        scans.append(scan)

    opportunities = sorted(
        (s.arbitrage for s in scans if s.arbitrage is not None),
        key=lambda a: (-a.edge, -(a.available_size or 0.0), a.market_id or ""),
    )
    spreads = [s.spread for s in scans if s.spread is not None]
    wide_markets = sorted(
        (s for s in scans if s.spread is not None and s.spread > wide),
        key=lambda s: (-s.spread, s.market_id),
    )
    average_spread_cents = (sum(spreads) / len(spreads) * 100.0) if spreads else 0.0

    if opportunities:
        reason = f"found {len(opportunities)} opportunities"
    elif not scans:
        reason = "no order book data"
    else:
        reason = constants.NO_ARBITRAGE_REASON
    return BinaryScanSummary(
        markets_analyzed=len(scans),
        opportunities=opportunities[:limit],
        wide_spread_markets=wide_markets[:limit],
        average_spread_cents=average_spread_cents,
        reason=reason,
    )
