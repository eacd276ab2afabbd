"""Conversions between display amounts and integer base units."""

from decimal import ROUND_FLOOR, Decimal
from typing import Optional, Union

from .models import Token

DEFAULT_DECIMALS = 6

Number = Union[Decimal, int, str]


def decimals_for(token: Optional[Token], default: int = DEFAULT_DECIMALS) -> int:
    if token is None or token.decimals is None:
        return default
    return token.decimals


def to_base_units(amount: Number, decimals: int = DEFAULT_DECIMALS) -> int:
    """Floor a display amount into base units; never rounds up."""

    if decimals < 0:
        raise ValueError("decimals must be non-negative.")
    scaled = Decimal(amount).scaleb(decimals)
    return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def from_base_units(value: Number, decimals: int = DEFAULT_DECIMALS) -> Decimal:
    if decimals < 0:
        raise ValueError("decimals must be non-negative.")
    return Decimal(value).scaleb(-decimals)
