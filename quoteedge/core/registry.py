"""Operation registry.

An explicit mapping from operation id to the pure analytics function behind it.
A transport layer looks operations up here; nothing in the core knows how they
are exposed.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

from quoteedge.core.arb import (
    best_quotes_per_outcome,
    detect_arbitrage,
    detect_binary_arbitrage,
    scan_arbitrage,
    scan_binary_market,
    scan_binary_markets,
)
from quoteedge.core.efficiency import analyze_binary_market, analyze_efficiency
from quoteedge.core.impact import analyze_liquidity, resolve_reference_price, simulate_fill
from quoteedge.core.normalize import normalize_quote, normalize_quotes
from quoteedge.core.orderbook import cumulative_depth, merge_books
from quoteedge.core.value import compare_venues, scan_value


class UnknownOperation(KeyError):
    """Raised when dispatching an operation id that is not registered."""
    pass


OPERATIONS: Dict[str, Callable[..., Any]] = {
    "normalize_quote": normalize_quote,
    "normalize_quotes": normalize_quotes,
    "analyze_efficiency": analyze_efficiency,
    "analyze_binary_market": analyze_binary_market,
    "best_quotes_per_outcome": best_quotes_per_outcome,
    "detect_arbitrage": detect_arbitrage,
    "scan_arbitrage": scan_arbitrage,
    "detect_binary_arbitrage": detect_binary_arbitrage,
    "scan_binary_market": scan_binary_market,
    "scan_binary_markets": scan_binary_markets,
    "scan_value": scan_value,
    "compare_venues": compare_venues,
    "merge_books": merge_books,
    "cumulative_depth": cumulative_depth,
    "simulate_fill": simulate_fill,
    "resolve_reference_price": resolve_reference_price,
    "analyze_liquidity": analyze_liquidity,
}


def get_operation(op_id: str) -> Callable[..., Any]:
    try:
        return OPERATIONS[op_id]
    except KeyError:
        raise UnknownOperation(op_id) from None


def dispatch(op_id: str, **kwargs: Any) -> Any:
    return get_operation(op_id)(**kwargs)


def list_operations() -> List[str]:
    return sorted(OPERATIONS)
