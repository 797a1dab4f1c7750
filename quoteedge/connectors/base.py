from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from quoteedge.core.models import PriceConvention, RawBook, RawQuote


class QuoteSource(ABC):
    """One provider of quotes for an event (a bookmaker or a prediction venue)."""

    name: str
    convention: PriceConvention = PriceConvention.DECIMAL

    @abstractmethod
    async def fetch_quotes(self, event_id: str) -> List[RawQuote]:
        raise NotImplementedError


class BookSource(ABC):
    name: str

    @abstractmethod
    async def fetch_book(self, token_id: str) -> RawBook:
        raise NotImplementedError
