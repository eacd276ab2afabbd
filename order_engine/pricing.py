"""USD price lookups used to size sandwich legs."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Mapping, Optional, Protocol, Tuple

from token_catalog.duality import CounterpartIndex
from token_catalog.models import Token

logger = logging.getLogger(__name__)


class PriceUnavailableError(LookupError):
    """Raised when no USD price is known for a token or its base token."""


class PriceSource(Protocol):
    async def get_price(self, token_id: str) -> Optional[Decimal]:
        """Return the USD price of a token, or None when unknown."""


class StaticPriceSource:
    """In-memory price table."""

    def __init__(self, prices: Optional[Mapping[str, Decimal]] = None) -> None:
        self._prices: Dict[str, Decimal] = {
            token_id: Decimal(price) for token_id, price in (prices or {}).items()
        }

    async def get_price(self, token_id: str) -> Optional[Decimal]:
        return self._prices.get(token_id)


async def resolve_token_price(
    prices: PriceSource, token: Token, index: Optional[CounterpartIndex] = None
) -> Decimal:
    """Price of ``token``; subnet tokens fall back to their Layer-1 base price."""

    candidates = [token.contract_id]
    if token.is_subnet and token.base_id:
        candidates.append(token.base_id)
    elif index is not None:
        counterpart = index.counterpart_of(token)
        if counterpart is not None:
            candidates.append(counterpart.contract_id)

    for token_id in candidates:
        try:
            price = await prices.get_price(token_id)
        except Exception as exc:
            logger.warning("Price lookup failed for %s: %s", token_id, exc)
            continue
        if price:
            return Decimal(price)

    raise PriceUnavailableError(
        f"Price data not available for {token.symbol}. Please wait a moment and try again."
    )


async def resolve_pair_prices(
    prices: PriceSource,
    token_a: Token,
    token_b: Token,
    index: Optional[CounterpartIndex] = None,
) -> Tuple[Decimal, Decimal]:
    price_a = await resolve_token_price(prices, token_a, index)
    price_b = await resolve_token_price(prices, token_b, index)
    return price_a, price_b
