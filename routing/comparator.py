"""Pick between a direct quote and a decomposed alternate route."""

from decimal import Decimal
from typing import Mapping, Optional

from token_catalog.models import Token
from token_catalog.units import decimals_for, from_base_units

from .models import Quote, RouteSummary, SecurityLevel


def pick_best_route(
    primary: Quote, alternate: Optional[Quote] = None, force_alternate: bool = False
) -> Quote:
    """Return the quote with the larger output; ties keep ``primary``.

    ``force_alternate`` is an explicit user override and skips the comparison.
    """

    if alternate is None:
        return primary
    if force_alternate:
        return alternate
    if alternate.total_out > primary.amount_out:
        return alternate
    return primary


def describe_route(quote: Quote) -> RouteSummary:
    return RouteSummary(
        amount_out=quote.total_out,
        hop_count=quote.hop_count,
        price_impact=quote.price_impact,
        security_level=security_level(quote.hop_count),
        decomposed=bool(quote.legs),
    )


def security_level(hop_count: int) -> SecurityLevel:
    if hop_count <= 1:
        return SecurityLevel.HIGH
    if hop_count == 2:
        return SecurityLevel.MEDIUM
    return SecurityLevel.LOW


def price_impact_percent(
    amount_in: int,
    amount_out: int,
    token_in: Token,
    token_out: Token,
    prices: Mapping[str, Decimal],
) -> Optional[Decimal]:
    """USD value change across a swap, in percent; None when it cannot be priced."""

    price_in = prices.get(token_in.contract_id)
    price_out = prices.get(token_out.contract_id)
    if price_in is None or price_out is None:
        return None

    value_in = from_base_units(amount_in, decimals_for(token_in)) * Decimal(price_in)
    value_out = from_base_units(amount_out, decimals_for(token_out)) * Decimal(price_out)
    if value_in == 0:
        return None
    return (value_out / value_in - 1) * 100
