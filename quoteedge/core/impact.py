"""Market-impact simulation on order book depth.

This module walks a book greedily to estimate what a hypothetical order of a
given USD notional would achieve, and turns spread plus slippage at standard
sizes into a liquidity score ("whale cost").
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from quoteedge.config import constants
from quoteedge.config.settings import LiquidityConfig, settings
from quoteedge.core.models import FillSimulation, LiquidityReport, MergedBook, OrderLevel
from quoteedge.core.orderbook import depth_usd, synthetic_share
from quoteedge.utils.logging import get_logger
from quoteedge.utils.validation import ValidationError, validate_notional, validate_number


logger = get_logger("impact")


def _degenerate(requested_usd: float, side: str) -> FillSimulation:
    return FillSimulation(
        requested_usd=requested_usd,
        filled_usd=0.0,
        shares_filled=0.0,
        avg_price=0.0,
        worst_price=0.0,
        slippage_percent=100.0,
        can_fill=False,
        levels_consumed=0,
        side=side,
        status=constants.STATUS_DEGENERATE,
    )


def simulate_fill(
    levels: Iterable[OrderLevel],
    requested_usd: float,
    reference_price: float,
    side: str = "sell",
) -> FillSimulation:
    """Fill a USD notional against one side of a book, best level first.

    Args:
        levels: Bids (to simulate a sell) or asks (to simulate a buy), in book order
        requested_usd: Target notional
        reference_price: Price slippage is measured from (mid or last trade)
        side: ``"sell"`` or ``"buy"``

    Returns:
        Fill statistics. An empty book or a non-positive reference price yields
        a zero fill with 100% slippage rather than an error.

    Example:
        bids = [OrderLevel(0.50, 2000), OrderLevel(0.45, 2000)]
        # Selling $1,500: $1,000 @ 0.50 (2000 sh) + $500 @ 0.45 (~1111 sh)
        # avg = 1500 / 3111 = 0.482, slippage vs 0.50 = 3.6%
    """
    if side not in ("sell", "buy"):
        raise ValidationError(f"side must be 'sell' or 'buy', got {side!r}")
    requested_usd = validate_notional(requested_usd, "requested_usd")
    reference_price = validate_number(reference_price, "reference_price")
    levels = list(levels)

    if not levels or reference_price <= 0:
        return _degenerate(requested_usd, side)

    remaining = requested_usd
    shares = 0.0
    worst_price = 0.0
    consumed = 0
    for level in levels:
        if remaining <= constants.FILL_EPSILON:
            break
        if level.price <= 0 or level.size <= 0:
            continue
        take_usd = min(remaining, level.size * level.price)
        shares += take_usd / level.price
        remaining -= take_usd
        worst_price = level.price
        consumed += 1

    can_fill = remaining <= constants.FILL_EPSILON
    filled = requested_usd if can_fill else requested_usd - remaining
    avg_price = filled / shares if shares > 0 else 0.0

    if shares <= 0:
        slippage = 100.0
    elif side == "sell":
        slippage = max(0.0, (reference_price - avg_price) / reference_price * 100.0)
    else:
        slippage = max(0.0, (avg_price - reference_price) / reference_price * 100.0)

    return FillSimulation(
        requested_usd=requested_usd,
        filled_usd=filled,
        shares_filled=shares,
        avg_price=avg_price,
        worst_price=worst_price,
        slippage_percent=slippage,
        can_fill=can_fill,
        levels_consumed=consumed,
        side=side,
    )


def classify_liquidity(
    spread: float,
    standard_slippage: float,
    small_slippage: float,
    config: Optional[LiquidityConfig] = None,
) -> str:
    """Score liquidity from the spread and slippage at the standard and small sizes."""
    cfg = config or settings.liquidity
    for label, (max_slip, max_spread) in (
        ("excellent", cfg.excellent),
        ("good", cfg.good),
        ("moderate", cfg.moderate),
    ):
        if standard_slippage < max_slip and spread < max_spread:
            return label
    if small_slippage < cfg.poor_small_slippage:
        return "poor"
    return "illiquid"


def resolve_reference_price(
    book: MergedBook,
    quoted_price: Optional[float] = None,
    last_trade_price: Optional[float] = None,
) -> float:
    """Pick the price slippage is measured from.

    Precedence: the venue's quoted price, then the last trade, then the merged
    book mid. The first candidate strictly inside (0, 1) wins; 0.0 if none is.
    """
    candidates: List[Optional[float]] = [quoted_price, last_trade_price, book.mid_price]
    for candidate in candidates:
        if candidate is None:
            continue
        try:
            value = validate_number(candidate, "reference_price")
        except ValidationError:
            continue
        if 0.0 < value < 1.0:
            return value
    return 0.0


def _size_label(size: float) -> str:
    if size >= 1000 and size % 1000 == 0:
        return f"sell_{int(size // 1000)}k"
    return f"sell_{size:g}"


def analyze_liquidity(
    book: MergedBook,
    reference_price: Optional[float] = None,
    config: Optional[LiquidityConfig] = None,
) -> LiquidityReport:
    """Spread, depth and exit cost at whale sizes for a (merged) book.

    Missing sides default to a best bid of 0 and a best ask of 1, so a one-sided
    book reports a full-width spread.
    """
    cfg = config or settings.liquidity
    ref = reference_price if reference_price is not None else resolve_reference_price(book)

    best_bid = book.best_bid if book.best_bid is not None else 0.0
    best_ask = book.best_ask if book.best_ask is not None else 1.0
    spread = best_ask - best_bid
    spread_bps = spread / ref * 10000.0 if ref > 0 else 0.0

    sizes = sorted(set(cfg.whale_sizes) | {cfg.standard_size_usd, cfg.small_size_usd})
    sims = {size: simulate_fill(book.bids, size, ref, side="sell") for size in sizes}
    standard = sims[cfg.standard_size_usd].slippage_percent
    small = sims[cfg.small_size_usd].slippage_percent
    score = classify_liquidity(spread, standard, small, cfg)

    if score == "excellent":
        recommendation = (
            f"Excellent liquidity. Spread: {spread * 100:.0f}c. "
            f"Exit ${cfg.standard_size_usd:,.0f} with ~{standard:.1f}% slippage."
        )
    elif score == "good":
        recommendation = (
            f"Good liquidity. Spread: {spread * 100:.0f}c. Exit ${cfg.small_size_usd:,.0f}: "
            f"~{small:.1f}% slippage, ${cfg.standard_size_usd:,.0f}: ~{standard:.1f}%."
        )
    elif score == "moderate":
        recommendation = (
            f"Moderate liquidity. Consider limit orders. "
            f"${cfg.small_size_usd:,.0f} exit: ~{small:.1f}% slippage."
        )
    else:
        recommendation = (
            f"Low liquidity. Exit ${cfg.small_size_usd:,.0f} would cost ~{small:.1f}% "
            "in slippage. Use limit orders."
        )

    logger.debug("Liquidity %s: spread=%.4f slippage@standard=%.1f%%", score, spread, standard)
    return LiquidityReport(
        reference_price=ref,
        best_bid=best_bid,
        best_ask=best_ask,
        spread=spread,
        spread_bps=spread_bps,
        bid_depth_usd=depth_usd(book.bids),
        ask_depth_usd=depth_usd(book.asks),
        whale_cost={_size_label(size): sims[size] for size in cfg.whale_sizes},
        score=score,
        recommendation=recommendation,
        view=book.view,
        note=book.note,
        synthetic_bid_share=synthetic_share(book.bids),
        synthetic_ask_share=synthetic_share(book.asks),
    )
