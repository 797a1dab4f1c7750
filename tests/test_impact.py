import pytest

from quoteedge.config.settings import LiquidityConfig
from quoteedge.core.impact import (
    analyze_liquidity,
    classify_liquidity,
    resolve_reference_price,
    simulate_fill,
)
from quoteedge.core.models import OrderLevel, RawBook
from quoteedge.core.orderbook import merge_books
from quoteedge.utils.validation import ValidationError


def levels(*pairs):
    return [OrderLevel(price=p, size=s) for p, s in pairs]


def test_sell_larger_than_book_cannot_fill():
    bids = levels((0.60, 5000), (0.50, 6000))  # $3,000 + $3,000
    sim = simulate_fill(bids, 10000, reference_price=0.60)
    assert sim.filled_usd == pytest.approx(6000)
    assert not sim.can_fill
    assert sim.filled_usd <= sim.requested_usd
    assert sim.worst_price == pytest.approx(0.50)
    assert sim.levels_consumed == 2
    assert sim.shares_filled == pytest.approx(11000)
    assert sim.avg_price == pytest.approx(6000 / 11000)


def test_partial_walk_fills_exactly():
    bids = levels((0.50, 2000), (0.45, 2000))
    sim = simulate_fill(bids, 1500, reference_price=0.50)
    assert sim.can_fill
    assert sim.filled_usd == 1500
    assert sim.shares_filled == pytest.approx(2000 + 500 / 0.45)
    assert sim.avg_price == pytest.approx(1500 / (2000 + 500 / 0.45))
    assert sim.slippage_percent == pytest.approx((0.50 - sim.avg_price) / 0.50 * 100)
    assert sim.worst_price == pytest.approx(0.45)


def test_fill_that_exhausts_book_exactly_counts_as_filled():
    bids = levels((0.1, 10), (0.2, 10), (0.3, 10))
    sim = simulate_fill(bids, 6.0, reference_price=0.3)
    assert sim.can_fill
    assert sim.filled_usd == sim.requested_usd


def test_can_fill_false_whenever_book_value_short():
    bids = levels((0.7, 100), (0.6, 100), (0.5, 100))
    total = sum(lv.price * lv.size for lv in bids)
    for requested in (total + 0.01, total * 2, total * 10):
        sim = simulate_fill(bids, requested, reference_price=0.7)
        assert not sim.can_fill
        assert sim.filled_usd <= requested


def test_slippage_never_negative_and_buy_side():
    bids = levels((0.55, 1000))
    assert simulate_fill(bids, 100, reference_price=0.50).slippage_percent == 0.0

    asks = levels((0.52, 100), (0.60, 1000))
    sim = simulate_fill(asks, 200, reference_price=0.50, side="buy")
    assert sim.can_fill
    assert sim.avg_price > 0.52
    assert sim.slippage_percent == pytest.approx((sim.avg_price - 0.50) / 0.50 * 100)


def test_degenerate_inputs_short_circuit():
    for book, ref in (([], 0.5), (levels((0.5, 100)), 0.0), (levels((0.5, 100)), -1.0)):
        sim = simulate_fill(book, 1000, ref)
        assert sim.filled_usd == 0.0
        assert sim.slippage_percent == 100.0
        assert not sim.can_fill
        assert sim.status == "degenerate"


def test_invalid_request_rejected():
    with pytest.raises(ValidationError):
        simulate_fill(levels((0.5, 1)), 0, 0.5)
    with pytest.raises(ValidationError):
        simulate_fill(levels((0.5, 1)), 100, 0.5, side="short")


@pytest.mark.parametrize(
    "spread,standard,small,expected",
    [(0.01, 1.0, 0.5, "excellent"), (0.025, 1.0, 0.5, "good"), (0.01, 4.0, 1.0, "good"),
     (0.04, 8.0, 2.0, "moderate"), (0.2, 50.0, 15.0, "poor"), (0.5, 100.0, 60.0, "illiquid")],
)
def test_classify_liquidity(spread, standard, small, expected):
    assert classify_liquidity(spread, standard, small) == expected


def test_reference_price_precedence():
    book = merge_books(RawBook(bids=((0.40, 10),), asks=((0.50, 10),)))
    assert resolve_reference_price(book, quoted_price=0.47, last_trade_price=0.41) == pytest.approx(0.47)
    assert resolve_reference_price(book, quoted_price=None, last_trade_price=0.41) == pytest.approx(0.41)
    assert resolve_reference_price(book, quoted_price=1.0, last_trade_price="nan") == pytest.approx(0.45)
    assert resolve_reference_price(merge_books(RawBook())) == 0.0


def test_deep_tight_book_is_excellent():
    book = merge_books(RawBook(bids=((0.50, 100000),), asks=((0.51, 100000),)), RawBook())
    report = analyze_liquidity(book)
    assert report.score == "excellent"
    assert report.reference_price == pytest.approx(0.505)
    assert set(report.whale_cost) == {"sell_1k", "sell_5k", "sell_10k"}
    assert all(sim.can_fill for sim in report.whale_cost.values())
    assert report.bid_depth_usd == pytest.approx(50000)
    assert report.total_depth_usd == pytest.approx(50000 + 51000)
    assert report.recommendation.startswith("Excellent liquidity")
    assert report.synthetic_bid_share == 0.0


def test_thin_book_is_illiquid():
    book = merge_books(RawBook(bids=((0.2, 100),), asks=((0.8, 100),)))
    report = analyze_liquidity(book)
    assert report.score == "illiquid"
    assert not report.whale_cost["sell_1k"].can_fill
    assert report.view == "raw"


def test_one_sided_book_uses_default_spread():
    book = merge_books(RawBook(bids=((0.30, 100),)))
    report = analyze_liquidity(book, reference_price=0.30)
    assert report.best_ask == 1.0
    assert report.spread == pytest.approx(0.70)


def test_custom_liquidity_config():
    cfg = LiquidityConfig(standard_size_usd=100.0, small_size_usd=50.0, whale_sizes=(50.0, 100.0))
    book = merge_books(RawBook(bids=((0.50, 1000),), asks=((0.51, 1000),)))
    report = analyze_liquidity(book, config=cfg)
    assert set(report.whale_cost) == {"sell_50", "sell_100"}
    assert report.score == "excellent"


def test_liquidity_reports_synthetic_share():
    book = merge_books(RawBook(bids=((0.50, 100),), asks=((0.60, 100),)), RawBook(asks=((0.50, 100),)))
    report = analyze_liquidity(book)
    assert report.view == "merged"
    assert report.synthetic_bid_share == pytest.approx(0.5)
    assert report.synthetic_ask_share == 0.0
