"""Merged order books for complementary-outcome tokens.

In a YES/NO market one YES plus one NO always pays out 1.0, so resting orders
on the complement are liquidity on the primary token at ``1 - price``:
- an ask on NO at p is a bid on YES at 1 - p
- a bid on NO at p is an ask on YES at 1 - p
Merging these synthetic levels with the direct book gives the depth a taker
can actually reach.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np

from quoteedge.core.models import MergedBook, OrderLevel, RawBook
from quoteedge.core.normalize import normalize_levels
from quoteedge.utils.logging import get_logger


logger = get_logger("orderbook")


RAW_VIEW_NOTE = "Complement book unavailable: direct orders only, liquidity is likely understated"
MERGED_VIEW_NOTE = "Includes synthetic liquidity from complement token"

BookLike = Union[RawBook, Mapping[str, Any], MergedBook]


def _sides(book: Optional[BookLike]) -> Tuple[Iterable, Iterable]:
    if book is None:
        return (), ()
    if isinstance(book, (RawBook, MergedBook)):
        return book.bids or (), book.asks or ()
    return book.get("bids") or (), book.get("asks") or ()


def complement_levels(levels: Iterable[OrderLevel]) -> List[OrderLevel]:
    """Map complement-token levels onto the primary token at ``1 - price``.

    Sizes carry over one-for-one. Levels whose transformed price is not strictly
    inside (0, 1) are degenerate and dropped.
    """
    out: List[OrderLevel] = []
    for level in levels:
        # drop float noise so 1 - 0.07 == 0.93
        price = round(1.0 - level.price, 10)
        if 0.0 < price < 1.0:
            out.append(OrderLevel(price=price, size=level.size, origin="synthetic"))
    return out


def sort_bids(levels: Iterable[OrderLevel]) -> List[OrderLevel]:
    # stable sort: at equal prices the direct levels (listed first) stay first
    return sorted(levels, key=lambda lv: -lv.price)


def sort_asks(levels: Iterable[OrderLevel]) -> List[OrderLevel]:
    return sorted(levels, key=lambda lv: lv.price)


def merge_books(primary: Optional[BookLike], complement: Optional[BookLike] = None) -> MergedBook:
    """Combine a token's direct book with synthetic levels from its complement.

    Args:
        primary: The token's own bids/asks (``RawBook`` or ``{"bids": .., "asks": ..}``)
        complement: The complementary token's book, or ``None`` when unavailable

    Returns:
        A `MergedBook`; ``view="raw"`` and an explanatory note when no
        complement was supplied or it contributed no usable levels.
    """
    primary_bids, primary_asks = _sides(primary)
    bids = normalize_levels(primary_bids, origin="direct")
    asks = normalize_levels(primary_asks, origin="direct")

    if complement is None:
        logger.debug("No complement book, returning raw view")
        return MergedBook(bids=sort_bids(bids), asks=sort_asks(asks), view="raw", note=RAW_VIEW_NOTE)

    comp_bids, comp_asks = _sides(complement)
    synthetic_bids = complement_levels(normalize_levels(comp_asks))
    synthetic_asks = complement_levels(normalize_levels(comp_bids))
    if not synthetic_bids and not synthetic_asks:
        logger.debug("Complement book has no usable levels, returning raw view")
        return MergedBook(bids=sort_bids(bids), asks=sort_asks(asks), view="raw", note=RAW_VIEW_NOTE)

    return MergedBook(
        bids=sort_bids(bids + synthetic_bids),
        asks=sort_asks(asks + synthetic_asks),
        view="merged",
        note=MERGED_VIEW_NOTE,
    )


def depth_usd(levels: List[OrderLevel]) -> float:
    """Total notional resting on one side (sum of price * size)."""
    if not levels:
        return 0.0
    prices = np.fromiter((lv.price for lv in levels), dtype=np.float64, count=len(levels))
    sizes = np.fromiter((lv.size for lv in levels), dtype=np.float64, count=len(levels))
    return float(np.dot(prices, sizes))


def cumulative_depth(levels: List[OrderLevel]) -> List[Tuple[float, float]]:
    """``(price, cumulative USD)`` after each level, in book order."""
    if not levels:
        return []
    values = np.fromiter((lv.value_usd for lv in levels), dtype=np.float64, count=len(levels))
    running = np.cumsum(values)
    return [(lv.price, float(total)) for lv, total in zip(levels, running)]


def synthetic_share(levels: List[OrderLevel]) -> float:
    """Fraction of a side's USD depth that comes from the complement token."""
    total = depth_usd(levels)
    if total <= 0:
        return 0.0
    return depth_usd([lv for lv in levels if lv.origin == "synthetic"]) / total
