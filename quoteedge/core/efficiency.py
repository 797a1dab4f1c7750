"""Market efficiency (vig / overround) and consensus probabilities.

For one event the analyzer reports, per source, how far its implied
probabilities sum above 1 (the vig), and derives a vig-free consensus by
averaging each outcome's implied probability across sources and normalizing
the averages to sum to 1.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from quoteedge.config import constants
from quoteedge.config.settings import EfficiencyTiers, settings
from quoteedge.core.models import (
    BinaryEfficiency,
    EfficiencySummary,
    OutcomeSet,
    PriceConvention,
    Quote,
    RawQuote,
    SourceEfficiency,
)
from quoteedge.core.normalize import normalize_quote
from quoteedge.utils.logging import get_logger


logger = get_logger("efficiency")


def classify_efficiency(vig_percent: float, tiers: Optional[EfficiencyTiers] = None) -> str:
    """Tier a vig percentage.

    Small deviations either way are excellent/good/fair; beyond the fair band a
    positive vig is ``poor`` and a negative one ``exploitable`` (the outcomes
    can be bought for less than they pay).
    """
    tiers = tiers or settings.efficiency
    magnitude = abs(vig_percent)
    if magnitude < tiers.excellent:
        return "excellent"
    if magnitude < tiers.good:
        return "good"
    if magnitude < tiers.fair:
        return "fair"
    if vig_percent > 0:
        return "poor"
    return "exploitable"


def build_outcome_set(event_id: str, quotes: Iterable[Quote], outcome_ids: Sequence[str] = ()) -> OutcomeSet:
    """Group quotes by outcome.

    Outcomes listed in `outcome_ids` come first, in that order, even if nobody
    quotes them; unlisted outcomes follow in first-seen order.
    """
    grouped: Dict[str, List[Quote]] = {oid: [] for oid in outcome_ids}
    for q in quotes:
        grouped.setdefault(q.outcome_id, []).append(q)
    return OutcomeSet(event_id=event_id, outcomes={k: tuple(v) for k, v in grouped.items()})


def _best_per_source(quotes: Iterable[Quote]) -> Dict[str, Dict[str, Quote]]:
    # source -> outcome -> quote; a source quoting the same outcome twice keeps its better price
    by_source: Dict[str, Dict[str, Quote]] = defaultdict(dict)
    for q in quotes:
        current = by_source[q.source_id].get(q.outcome_id)
        if current is None or q.implied_probability < current.implied_probability:
            by_source[q.source_id][q.outcome_id] = q
    return by_source


def consensus_probabilities(quotes: Iterable[Quote]) -> Dict[str, float]:
    """Average each outcome's implied probability across sources, then normalize to 1."""
    by_outcome: Dict[str, List[float]] = {}
    for outcomes in _best_per_source(quotes).values():
        for outcome_id, q in outcomes.items():
            by_outcome.setdefault(outcome_id, []).append(q.implied_probability)

    if not by_outcome:
        return {}

    names = list(by_outcome)
    averages = np.array([np.mean(by_outcome[n]) for n in names], dtype=np.float64)
    normalized = averages / averages.sum()
    return {name: float(p) for name, p in zip(names, normalized)}


def analyze_efficiency(
    quotes: Iterable[Quote],
    outcome_ids: Sequence[str] = (),
    tiers: Optional[EfficiencyTiers] = None,
) -> EfficiencySummary:
    """Compute per-source vig, consensus probabilities and the lowest-vig source.

    Args:
        quotes: Every quote observed for one event
        outcome_ids: The event's full outcome list, if known; outcomes in it that
            nobody quotes are reported under ``insufficient_data``
        tiers: Efficiency tier bounds (defaults to ``settings.efficiency``)
    """
    quotes = list(quotes)
    outcome_set = build_outcome_set("", quotes, outcome_ids)
    all_outcomes = set(outcome_set.outcome_ids)
    missing = [oid for oid, qs in outcome_set.outcomes.items() if not qs]

    per_source: List[SourceEfficiency] = []
    for source_id, outcomes in _best_per_source(quotes).items():
        total = float(sum(q.implied_probability for q in outcomes.values()))
        vig_percent = (total - 1.0) * 100.0
        per_source.append(
            SourceEfficiency(
                source_id=source_id,
                total_implied_probability=total,
                vig_percent=vig_percent,
                efficiency=classify_efficiency(vig_percent, tiers),
                outcomes_quoted=len(outcomes),
                complete=set(outcomes) == all_outcomes,
            )
        )
    per_source.sort(key=lambda s: (s.vig_percent, s.source_id))

    # A source that skips an outcome looks artificially cheap, so prefer complete books
    candidates = [s for s in per_source if s.complete] or per_source
    lowest = candidates[0].source_id if candidates else None
    average_vig = float(np.mean([s.vig_percent for s in per_source])) if per_source else None

    consensus = consensus_probabilities(quotes)
    if len(per_source) < constants.MIN_CORROBORATING_SOURCES or len(consensus) < constants.MIN_OUTCOMES or missing:
        status = constants.STATUS_INSUFFICIENT
    else:
        status = constants.STATUS_OK

    if lowest is None:
        recommendation = "No quotes available for analysis."
    else:
        best = next(s for s in per_source if s.source_id == lowest)
        recommendation = (
            f"For best value, prefer sources with the lowest vig. {lowest} is the most efficient "
            f"at {best.vig_percent:.2f}% vig. Consensus probabilities are vig-adjusted."
        )
        if status == constants.STATUS_INSUFFICIENT:
            recommendation += " Limited data: treat consensus with caution."

    logger.debug(
        "Efficiency: %d sources, %d outcomes, status=%s", len(per_source), len(consensus), status
    )
    return EfficiencySummary(
        per_source=per_source,
        consensus=consensus,
        lowest_vig_source_id=lowest,
        average_vig_percent=average_vig,
        insufficient_data=missing,
        status=status,
        recommendation=recommendation,
    )


def analyze_binary_market(
    yes_price: float,
    no_price: float,
    source_id: str = "market",
    tiers: Optional[EfficiencyTiers] = None,
) -> BinaryEfficiency:
    """Efficiency of a two-token prediction market from its YES and NO prices.

    Raises:
        InvalidQuote: If either price is outside (0, 1) or the market is settled
    """
    yes = normalize_quote(RawQuote("YES", source_id, yes_price), PriceConvention.PROBABILITY)
    no = normalize_quote(RawQuote("NO", source_id, no_price), PriceConvention.PROBABILITY)
    total = yes.implied_probability + no.implied_probability
    vig = total - 1.0
    if vig < -0.01:
        recommendation = (
            f"Arbitrage opportunity! Sum of prices is {total:.4f}. "
            "Buy all outcomes for guaranteed profit."
        )
    elif vig > 0.05:
        recommendation = f"High vig ({vig * 100:.1f}%). Spread is eating potential edge."
    elif vig > 0.02:
        recommendation = f"Moderate vig ({vig * 100:.1f}%). Account for this when sizing positions."
    else:
        recommendation = "Market is efficiently priced. Edge must come from superior information."

    return BinaryEfficiency(
        sum_of_prices=total,
        vig=vig,
        vig_bps=vig * 10000.0,
        efficiency=classify_efficiency(vig * 100.0, tiers),
        is_efficient=abs(vig) < 0.02,
        true_probabilities={"YES": yes.implied_probability / total, "NO": no.implied_probability / total},
        recommendation=recommendation,
    )
