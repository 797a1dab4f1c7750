"""Quote and order-book normalization.

This is the boundary between loosely-typed provider payloads and the analytics:
- Decimal / American odds and token prices become `Quote` records with an
  implied probability
- Raw book levels become `OrderLevel` records
Single-record functions raise; batch functions drop bad records and log them.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Union

from quoteedge.core.models import OrderLevel, PriceConvention, Quote, RawQuote
from quoteedge.utils.logging import get_logger
from quoteedge.utils.validation import (
    InvalidQuote,
    SettledMarket,
    ValidationError,
    validate_identifier,
    validate_number,
    validate_optional_size,
    validate_size,
)


logger = get_logger("normalize")


RawQuoteLike = Union[RawQuote, Mapping[str, Any]]


def american_to_decimal(american: float) -> float:
    """Convert moneyline odds to decimal odds.

    +150 -> 2.50, -200 -> 1.50. Values strictly between -100 and +100 are not
    valid moneyline prices.
    """
    if -100 < american < 100:
        raise InvalidQuote(f"American odds must be <= -100 or >= +100, got {american}", american)
    if american > 0:
        return american / 100.0 + 1.0
    return 100.0 / abs(american) + 1.0


def decimal_to_implied(decimal_odds: float) -> float:
    if decimal_odds <= 1.0:
        raise InvalidQuote(f"Decimal odds must be > 1.0, got {decimal_odds}", decimal_odds)
    return 1.0 / decimal_odds


def implied_probability(price: float, convention: PriceConvention) -> float:
    """Implied probability for a price under a convention.

    Raises:
        InvalidQuote: Odds that imply a probability outside (0, 1)
        SettledMarket: A token price of exactly 0 or 1
    """
    convention = PriceConvention(convention)
    if convention is PriceConvention.DECIMAL:
        return decimal_to_implied(price)
    if convention is PriceConvention.AMERICAN:
        return decimal_to_implied(american_to_decimal(price))

    if price == 0.0 or price == 1.0:
        raise SettledMarket(f"Token price {price} means the market has resolved", price)
    if not 0.0 < price < 1.0:
        raise InvalidQuote(f"Token price must be in (0, 1), got {price}", price)
    return price


def _field(raw: RawQuoteLike, *names: str, default: Any = None) -> Any:
    if isinstance(raw, RawQuote):
        return getattr(raw, names[0])
    for name in names:
        if name in raw:
            return raw[name]
    return default


def normalize_quote(raw: RawQuoteLike, convention: PriceConvention = PriceConvention.DECIMAL) -> Quote:
    """Turn one raw quote into a `Quote`.

    `raw` is a `RawQuote` or a mapping with ``outcome``/``source``/``price``
    and optional ``size`` keys (the ``*_id`` / ``size_usd`` spellings work too).

    Raises:
        InvalidQuote: Malformed price or odds (including non-numeric prices)
        ValidationError: Missing identifiers or a negative size
    """
    outcome_id = validate_identifier(_field(raw, "outcome_id", "outcome"), "outcome_id")
    source_id = validate_identifier(_field(raw, "source_id", "source", "bookmaker"), "source_id")
    raw_price = _field(raw, "price", "odds")
    try:
        price = validate_number(raw_price, "price")
    except ValidationError as exc:
        raise InvalidQuote(str(exc), raw_price) from None
    size = validate_optional_size(_field(raw, "size_usd", "size"), "size_usd")

    return Quote(
        outcome_id=outcome_id,
        source_id=source_id,
        implied_probability=implied_probability(price, convention),
        raw_price=price,
        convention=PriceConvention(convention),
        size_usd=size,
    )


def normalize_quotes(
    raws: Iterable[RawQuoteLike], convention: PriceConvention = PriceConvention.DECIMAL
) -> List[Quote]:
    """Normalize many quotes, excluding the invalid and settled ones."""
    quotes: List[Quote] = []
    dropped = 0
    for raw in raws:
        try:
            quotes.append(normalize_quote(raw, convention))
        except ValidationError as exc:
            dropped += 1
            logger.debug("Dropping quote %r: %s", raw, exc)
    if dropped:
        logger.info("Normalized %d quotes, dropped %d invalid", len(quotes), dropped)
    return quotes


def normalize_level(raw: Any, origin: str = "direct") -> OrderLevel:
    """Parse one book level from a ``(price, size)`` pair or a price/size mapping.

    Raises:
        ValidationError: Non-numeric values, negative size, or a price outside (0, 1)
    """
    if isinstance(raw, OrderLevel):
        price, size = raw.price, raw.size
    elif isinstance(raw, Mapping):
        price, size = raw.get("price"), raw.get("size")
    else:
        try:
            price, size = raw
        except (TypeError, ValueError):
            raise ValidationError(f"Cannot read book level from {raw!r}") from None

    price = validate_number(price, "price")
    size = validate_size(size, "size")
    if not 0.0 < price < 1.0:
        raise ValidationError(f"Level price must be in (0, 1), got {price}")
    return OrderLevel(price=price, size=size, origin=origin)


def normalize_levels(raws: Iterable[Any], origin: str = "direct") -> List[OrderLevel]:
    """Parse book levels, skipping malformed and empty ones."""
    levels: List[OrderLevel] = []
    for raw in raws or ():
        try:
            level = normalize_level(raw, origin)
        except ValidationError as exc:
            logger.debug("Dropping book level %r: %s", raw, exc)
            continue
        if level.size > 0:
            levels.append(level)
    return levels
