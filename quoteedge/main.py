from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

from quoteedge.config.settings import settings
from quoteedge.connectors.base import BookSource, QuoteSource
from quoteedge.connectors.demo import EVENTS, DemoBookSource, demo_sources
from quoteedge.core.arb import scan_arbitrage, scan_binary_market
from quoteedge.core.efficiency import analyze_efficiency
from quoteedge.core.impact import analyze_liquidity
from quoteedge.core.models import MergedBook, Quote
from quoteedge.core.normalize import normalize_quotes
from quoteedge.core.orderbook import merge_books
from quoteedge.core.value import scan_value
from quoteedge.utils.batching import gather_bounded
from quoteedge.utils.logging import get_logger


logger = get_logger("main")


async def collect_event_quotes(
    event_id: str, sources: Sequence[QuoteSource], limit: Optional[int] = None
) -> List[Quote]:
    """Fetch one event from every source (bounded) and normalize what came back.

    A source whose fetch fails is left out of the result.
    """
    results = await gather_bounded(
        [lambda s=s: s.fetch_quotes(event_id) for s in sources],
        limit=limit,
        labels=[f"{s.name}:{event_id}" for s in sources],
    )
    quotes: List[Quote] = []
    for source, raws in zip(sources, results):
        if raws is None:
            continue
        quotes.extend(normalize_quotes(raws, source.convention))
    return quotes


async def load_merged_book(
    book_source: BookSource, primary_token: str, complement_token: Optional[str] = None
) -> MergedBook:
    """Fetch a token's book plus its complement's and merge them.

    If the complement cannot be fetched the raw (direct-only) view is returned.
    """
    tokens = [primary_token] + ([complement_token] if complement_token else [])
    books = await gather_bounded([lambda t=t: book_source.fetch_book(t) for t in tokens], labels=tokens)
    primary = books[0]
    complement = books[1] if len(books) > 1 else None
    if primary is None:
        raise LookupError(f"Could not load book for {primary_token}")
    return merge_books(primary, complement)


async def run_once(sources: Optional[Sequence[QuoteSource]] = None) -> int:
    sources = list(sources) if sources is not None else demo_sources()
    events: Dict[str, List[Quote]] = {}
    for event_id in EVENTS:
        events[event_id] = await collect_event_quotes(event_id, sources, settings.fetch.concurrency)

    findings = 0
    for event_id, quotes in events.items():
        summary = analyze_efficiency(quotes, EVENTS[event_id])
        logger.info(
            "%s: lowest vig %s, avg vig %.2f%%, status=%s",
            event_id,
            summary.lowest_vig_source_id,
            summary.average_vig_percent or 0.0,
            summary.status,
        )
        flags = scan_value(quotes, summary.consensus)
        findings += len(flags)

    scan = scan_arbitrage(events)
    findings += len(scan.opportunities)
    logger.info("Arbitrage scan: %s (%d events)", scan.reason, scan.events_analyzed)

    book_source = DemoBookSource()
    yes_book = await book_source.fetch_book("fed-cut-dec-YES")
    no_book = await book_source.fetch_book("fed-cut-dec-NO")
    binary = scan_binary_market("fed-cut-dec", yes_book, no_book)
    if binary.arbitrage is not None:
        findings += 1

    merged = await load_merged_book(book_source, "fed-cut-dec-YES", "fed-cut-dec-NO")
    report = analyze_liquidity(merged)
    logger.info(
        "fed-cut-dec YES liquidity: %s (%.0f%% of bid depth synthetic). %s",
        report.score,
        report.synthetic_bid_share * 100.0,
        report.recommendation,
    )
    return findings


def cli():
    asyncio.run(run_once())


if __name__ == "__main__":
    cli()
