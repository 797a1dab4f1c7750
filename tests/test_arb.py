import pytest

from quoteedge.core.arb import (
    best_quotes_per_outcome,
    detect_arbitrage,
    detect_binary_arbitrage,
    rank_opportunities,
    scan_arbitrage,
    scan_binary_market,
    scan_binary_markets,
)
from quoteedge.core.models import PriceConvention, RawBook, RawQuote
from quoteedge.core.normalize import normalize_quote, normalize_quotes
from quoteedge.utils.validation import ValidationError


def q(outcome, source, odds, size=None):
    return normalize_quote(RawQuote(outcome, source, odds, size), PriceConvention.DECIMAL)


def test_two_outcome_arbitrage_example():
    opp = detect_arbitrage([q("Home", "bk1", 2.10), q("Away", "bk2", 2.05)])
    assert opp is not None
    assert [leg.implied_probability for leg in opp.legs] == pytest.approx([0.4762, 0.4878], abs=1e-4)
    assert opp.total_implied_probability == pytest.approx(0.9640, abs=1e-4)
    assert opp.profit_percent == pytest.approx(3.74, abs=0.01)
    assert [leg.stake_percent for leg in opp.legs] == pytest.approx([49.4, 50.6], abs=0.05)


def test_stakes_sum_to_100_and_pay_out_equally():
    basket = [q("A", "x", 3.4), q("B", "y", 3.6), q("C", "z", 3.9)]
    opp = detect_arbitrage(basket)
    assert opp is not None
    assert sum(leg.stake_percent for leg in opp.legs) == pytest.approx(100.0, abs=1e-6)
    payouts = [leg.stake_percent * leg.price for leg in opp.legs]
    for payout in payouts:
        assert payout == pytest.approx(payouts[0], rel=1e-6)
        assert payout == pytest.approx(100.0 / opp.total_implied_probability, rel=1e-6)


def test_flagged_iff_sum_below_one_minus_margin():
    # 1/2.0 + 1/2.02 = 0.99505, just above 0.995
    assert detect_arbitrage([q("A", "x", 2.0), q("B", "y", 2.02)]) is None
    assert detect_arbitrage([q("A", "x", 2.0), q("B", "y", 2.02)], margin_threshold=0.0) is not None
    # 1/2.0 + 1/2.03 = 0.99261
    assert detect_arbitrage([q("A", "x", 2.0), q("B", "y", 2.03)]) is not None
    assert detect_arbitrage([q("A", "x", 2.0), q("B", "y", 2.03)], margin_threshold=0.01) is None


def test_degenerate_baskets():
    assert detect_arbitrage([]) is None
    assert detect_arbitrage([q("A", "x", 5.0)]) is None
    with pytest.raises(ValidationError):
        detect_arbitrage([q("A", "x", 2.5), q("A", "y", 2.6)])
    with pytest.raises(ValidationError):
        detect_arbitrage([q("A", "x", 2.5), q("B", "y", 2.6)], margin_threshold=1.5)


def test_best_quotes_per_outcome_prefers_highest_payout_then_size():
    quotes = [
        q("A", "x", 2.0, 100), q("A", "y", 2.1, 50), q("B", "x", 1.9, 10),
        q("B", "y", 1.9, 500), q("B", "z", 1.9, 500),
    ]
    best = best_quotes_per_outcome(quotes)
    assert [(b.outcome_id, b.source_id) for b in best] == [("A", "y"), ("B", "y")]


def test_scan_ranks_by_profit_and_reports_reason():
    events = {
        "small": [q("A", "x", 2.05), q("B", "y", 2.05)],
        "big": [q("A", "x", 2.2), q("B", "y", 2.2)],
        "fair": [q("A", "x", 1.9), q("B", "y", 1.9)],
    }
    scan = scan_arbitrage(events)
    assert [o.event_id for o in scan.opportunities] == ["big", "small"]
    assert scan.events_analyzed == 3
    assert scan.quotes_scanned == 6
    assert "big" in scan.recommendation

    limited = scan_arbitrage(events, min_profit_percent=5.0)
    assert [o.event_id for o in limited.opportunities] == ["big"]


def test_scan_without_opportunities_is_explicit():
    scan = scan_arbitrage({"fair": [q("A", "x", 1.9), q("B", "y", 1.9)]})
    assert scan.opportunities == []
    assert scan.reason == "efficiently priced"
    assert scan.to_dict()["reason"] == "efficiently priced"


def test_rank_ties_by_size_then_outcome_ids():
    sized_small = detect_arbitrage([q("A", "x", 2.2, 100), q("B", "y", 2.2, 100)], event_id="e1")
    sized_big = detect_arbitrage([q("A", "x", 2.2, 900), q("B", "y", 2.2, 900)], event_id="e2")
    ranked = rank_opportunities([sized_small, sized_big])
    assert [o.event_id for o in ranked] == ["e2", "e1"]

    unsized_b = detect_arbitrage([q("C", "x", 2.2), q("D", "y", 2.2)], event_id="e3")
    unsized_a = detect_arbitrage([q("A", "x", 2.2), q("B", "y", 2.2)], event_id="e4")
    ranked = rank_opportunities([unsized_b, unsized_a])
    assert [o.event_id for o in ranked] == ["e4", "e3"]


def test_binary_arbitrage_example():
    arb = detect_binary_arbitrage(0.47, 0.50)
    assert arb is not None
    assert arb.total_cost == pytest.approx(0.97)
    assert arb.edge == pytest.approx(0.03)
    assert arb.edge_percent == pytest.approx(3.0)
    assert "3.0c profit per $1" in arb.note

    assert detect_binary_arbitrage(0.50, 0.497) is None
    with pytest.raises(ValidationError):
        detect_binary_arbitrage(0.0, 0.5)


def test_binary_market_scan_uses_merged_books():
    yes = RawBook(bids=((0.44, 50),), asks=((0.47, 100),))
    no = RawBook(bids=((0.49, 80),), asks=((0.50, 200),))
    scan = scan_binary_market("m1", yes, no)
    # YES asks: direct 0.47, synthetic 1 - 0.49 = 0.51; NO asks: direct 0.50, synthetic 0.56
    assert scan.best_yes_ask == pytest.approx(0.47)
    assert scan.best_no_ask == pytest.approx(0.50)
    # YES bids: direct 0.44, synthetic 1 - 0.50 = 0.50
    assert scan.best_yes_bid == pytest.approx(0.50)
    assert scan.arbitrage is not None
    assert scan.arbitrage.available_size == pytest.approx(100)
    assert scan.view == "merged"


def test_binary_market_scan_without_complement():
    scan = scan_binary_market("m2", RawBook(asks=((0.40, 10),)), None)
    assert scan.view == "raw"
    assert scan.best_no_ask is None
    assert scan.arbitrage is None


def test_scan_binary_markets_summary():
    markets = {
        "arb": (RawBook(asks=((0.45, 10),)), RawBook(asks=((0.50, 10),))),
        "wide": (RawBook(bids=((0.30, 10),), asks=((0.60, 10),)), RawBook(asks=((0.65, 10),))),
        "empty": (RawBook(), RawBook()),
    }
    summary = scan_binary_markets(markets)
    assert summary.markets_analyzed == 2
    assert [a.market_id for a in summary.opportunities] == ["arb"]
    assert [m.market_id for m in summary.wide_spread_markets] == ["wide"]
    assert summary.reason == "found 1 opportunities"


def test_scan_binary_markets_nothing_found():
    markets = {"fair": (RawBook(asks=((0.52, 10),)), RawBook(asks=((0.50, 10),)))}
    summary = scan_binary_markets(markets)
    assert summary.opportunities == []
    assert summary.reason == "efficiently priced"


def test_decimal_quotes_from_mapping_input():
    quotes = normalize_quotes(
        [{"outcome": "A", "bookmaker": "x", "odds": 2.1}, {"outcome": "B", "bookmaker": "y", "odds": 2.05}]
    )
    assert detect_arbitrage(best_quotes_per_outcome(quotes)) is not None
