from .duality import CounterpartIndex, build_counterparts
from .models import Token, TokenCounterpartPair, TokenKind
from .units import DEFAULT_DECIMALS, decimals_for, from_base_units, to_base_units

__all__ = [
    "CounterpartIndex",
    "DEFAULT_DECIMALS",
    "Token",
    "TokenCounterpartPair",
    "TokenKind",
    "build_counterparts",
    "decimals_for",
    "from_base_units",
    "to_base_units",
]
