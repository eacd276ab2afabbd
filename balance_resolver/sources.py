"""Balance and quote ports plus in-memory implementations."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Mapping, Optional, Protocol, Tuple

from routing.models import Quote
from token_catalog.duality import CounterpartIndex
from token_catalog.units import DEFAULT_DECIMALS, decimals_for, from_base_units, to_base_units


class QuoteUnavailableError(LookupError):
    """Raised when no route exists between two tokens."""


class BalanceSource(Protocol):
    async def get_balance(self, owner_id: str, token_id: str) -> Optional[Decimal]:
        """Display-precision balance, or None when the owner holds none."""

    async def list_holdings(self, owner_id: str) -> Mapping[str, Decimal]:
        """Every token the owner holds, keyed by contract id."""


class QuoteSource(Protocol):
    async def quote(self, token_in: str, token_out: str, amount_in: int) -> Quote:
        """Best route for ``amount_in`` base units of ``token_in``."""


class StaticBalanceSource:
    """Balances per owner, per contract id."""

    def __init__(self, balances: Optional[Mapping[str, Mapping[str, Decimal]]] = None) -> None:
        self._balances: Dict[str, Dict[str, Decimal]] = {
            owner: {token_id: Decimal(amount) for token_id, amount in holdings.items()}
            for owner, holdings in (balances or {}).items()
        }

    async def get_balance(self, owner_id: str, token_id: str) -> Optional[Decimal]:
        return self._balances.get(owner_id, {}).get(token_id)

    async def list_holdings(self, owner_id: str) -> Dict[str, Decimal]:
        return dict(self._balances.get(owner_id, {}))


class RateQuoteSource:
    """Single-hop quotes from a fixed exchange-rate table.

    ``rates[(a, b)]`` is how many ``b`` one ``a`` buys, in display units.
    """

    def __init__(
        self,
        rates: Mapping[Tuple[str, str], Decimal],
        index: Optional[CounterpartIndex] = None,
        default_decimals: int = DEFAULT_DECIMALS,
    ) -> None:
        self._rates = {pair: Decimal(rate) for pair, rate in rates.items()}
        self._index = index
        self._default_decimals = default_decimals

    async def quote(self, token_in: str, token_out: str, amount_in: int) -> Quote:
        rate = self._rates.get((token_in, token_out))
        if rate is None:
            raise QuoteUnavailableError(f"No route from {token_in} to {token_out}.")

        display_in = from_base_units(amount_in, self._decimals(token_in))
        amount_out = to_base_units(display_in * rate, self._decimals(token_out))
        return Quote(
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            amount_out=amount_out,
            path=(token_in, token_out),
        )

    def _decimals(self, token_id: str) -> int:
        token = self._index.token(token_id) if self._index is not None else None
        return decimals_for(token, self._default_decimals)
