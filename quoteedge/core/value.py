"""Value-bet scanning against consensus probabilities.

A quote is "value" when its own implied probability is below the consensus
(vig-free) probability for the same outcome, i.e. the source pays more than
the fair price. Confidence depends on how many sources back the consensus.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Set

from quoteedge.config.settings import ValueConfig, settings
from quoteedge.core.models import Quote, ValueFlag, VenueGap
from quoteedge.utils.logging import get_logger
from quoteedge.utils.validation import InvalidQuote, validate_number


logger = get_logger("value")


def edge_percent(consensus_probability: float, implied_probability: float) -> float:
    return (consensus_probability - implied_probability) / implied_probability * 100.0


def classify_confidence(source_count: int, edge: float, config: Optional[ValueConfig] = None) -> str:
    cfg = config or settings.value
    if source_count >= cfg.high_min_sources and edge >= cfg.high_min_edge:
        return "high"
    if source_count >= cfg.medium_min_sources and edge >= cfg.medium_min_edge:
        return "medium"
    return "low"


def scan_value(
    quotes: Iterable[Quote],
    consensus: Mapping[str, float],
    min_edge_threshold: Optional[float] = None,
    config: Optional[ValueConfig] = None,
) -> List[ValueFlag]:
    """Flag quotes priced better than consensus by at least `min_edge_threshold` percent.

    Outcomes absent from `consensus` (or with a zero consensus) are skipped.
    Results are sorted by edge, largest first.
    """
    cfg = config or settings.value
    min_edge = cfg.min_edge_percent if min_edge_threshold is None else min_edge_threshold
    quotes = list(quotes)

    sources_by_outcome: Dict[str, Set[str]] = defaultdict(set)
    for q in quotes:
        sources_by_outcome[q.outcome_id].add(q.source_id)

    flags: List[ValueFlag] = []
    for q in quotes:
        consensus_prob = consensus.get(q.outcome_id, 0.0)
        if consensus_prob <= 0:
            continue
        edge = edge_percent(consensus_prob, q.implied_probability)
        if edge < min_edge:
            continue
        count = len(sources_by_outcome[q.outcome_id])
        flags.append(
            ValueFlag(
                outcome_id=q.outcome_id,
                source_id=q.source_id,
                price=q.raw_price,
                implied_probability=q.implied_probability,
                consensus_probability=consensus_prob,
                edge_percent=edge,
                confidence=classify_confidence(count, edge, cfg),
                source_count=count,
            )
        )

    flags.sort(key=lambda f: (-f.edge_percent, f.outcome_id, f.source_id))
    if flags:
        logger.info("Found %d value quotes at >= %.1f%% edge", len(flags), min_edge)
    return flags


def compare_venues(
    consensus: Mapping[str, float],
    venue_prices: Mapping[str, float],
    min_gap: Optional[float] = None,
) -> List[VenueGap]:
    """Compare bookmaker consensus with a prediction market's token prices.

    Only outcomes present on both sides are compared; gaps of at least
    `min_gap` probability points are returned, largest first.

    Raises:
        InvalidQuote: If a venue price is outside [0, 1]
    """
    threshold = settings.value.min_venue_gap if min_gap is None else min_gap
    gaps: List[VenueGap] = []
    for outcome_id, raw_price in venue_prices.items():
        if outcome_id not in consensus:
            continue
        price = validate_number(raw_price, f"venue price for {outcome_id}")
        if not 0.0 <= price <= 1.0:
            raise InvalidQuote(f"Venue price for {outcome_id} must be in [0, 1], got {price}", raw_price)
        gap = price - consensus[outcome_id]
        if abs(gap) >= threshold:
            gaps.append(
                VenueGap(
                    outcome_id=outcome_id,
                    consensus_probability=consensus[outcome_id],
                    venue_price=price,
                    gap=gap,
                )
            )
    gaps.sort(key=lambda g: (-abs(g.gap), g.outcome_id))
    return gaps
