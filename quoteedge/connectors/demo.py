from __future__ import annotations

import random
from typing import Dict, List, Optional, Tuple

from quoteedge.connectors.base import BookSource, QuoteSource
from quoteedge.core.models import PriceConvention, RawBook, RawQuote


EVENTS: Dict[str, Tuple[str, ...]] = {
    "lakers-celtics": ("Lakers", "Celtics"),
    "arsenal-chelsea": ("Arsenal", "Draw", "Chelsea"),
    "fed-cut-dec": ("YES", "NO"),
}

# fair probabilities the demo bookmakers shade with their own margin
FAIR: Dict[str, Tuple[float, ...]] = {
    "lakers-celtics": (0.45, 0.55),
    "arsenal-chelsea": (0.42, 0.27, 0.31),
    "fed-cut-dec": (0.62, 0.38),
}


class DemoOddsSource(QuoteSource):
    """Bookmaker returning seeded decimal odds around a fair price with a margin."""

    convention = PriceConvention.DECIMAL

    def __init__(self, name: str, margin: float = 0.04, noise: float = 0.02, seed: Optional[int] = None):
        self.name = name
        self.margin = margin
        self.noise = noise
        self._rng = random.Random(seed if seed is not None else name)

    async def fetch_quotes(self, event_id: str) -> List[RawQuote]:
        if event_id not in EVENTS:
            raise KeyError(f"unknown demo event {event_id}")
        quotes: List[RawQuote] = []
        for outcome, fair in zip(EVENTS[event_id], FAIR[event_id]):
            shaded = fair * (1 + self.margin) * (1 + self._rng.uniform(-self.noise, self.noise))
            shaded = min(max(shaded, 0.02), 0.98)
            quotes.append(
                RawQuote(
                    outcome_id=outcome,
                    source_id=self.name,
                    price=round(1.0 / shaded, 2),
                    size_usd=round(self._rng.uniform(200, 2000), 2),
                )
            )
        return quotes


class FailingSource(QuoteSource):
    """Source whose fetch always fails; used to exercise partial-failure handling."""

    def __init__(self, name: str = "offline"):
        self.name = name

    async def fetch_quotes(self, event_id: str) -> List[RawQuote]:
        raise ConnectionError(f"{self.name} unavailable")


class DemoBookSource(BookSource):
    """Static YES/NO books keyed by token id."""

    name = "demo-clob"

    def __init__(self, books: Optional[Dict[str, RawBook]] = None):
        self._books = books if books is not None else demo_books()

    async def fetch_book(self, token_id: str) -> RawBook:
        if token_id not in self._books:
            raise KeyError(f"no book for token {token_id}")
        return self._books[token_id]


def demo_books() -> Dict[str, RawBook]:
    return {
        "fed-cut-dec-YES": RawBook(
            bids=((0.60, 4000), (0.58, 6000), (0.55, 10000)),
            asks=((0.63, 3000), (0.65, 5000)),
        ),
        "fed-cut-dec-NO": RawBook(
            bids=((0.36, 2500), (0.34, 4000)),
            asks=((0.39, 3500), (0.41, 6000)),
        ),
    }


def demo_sources(count: int = 6) -> List[DemoOddsSource]:
    return [DemoOddsSource(f"book-{i}", margin=0.02 + 0.01 * (i % 4), seed=i) for i in range(count)]
