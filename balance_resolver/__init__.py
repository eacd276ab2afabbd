from .models import BalanceCheckResult, SwapOption
from .resolver import BalanceCheckSession, BalanceResolver
from .sources import (
    BalanceSource,
    QuoteSource,
    QuoteUnavailableError,
    RateQuoteSource,
    StaticBalanceSource,
)

__all__ = [
    "BalanceCheckResult",
    "BalanceCheckSession",
    "BalanceResolver",
    "BalanceSource",
    "QuoteSource",
    "QuoteUnavailableError",
    "RateQuoteSource",
    "StaticBalanceSource",
    "SwapOption",
]
