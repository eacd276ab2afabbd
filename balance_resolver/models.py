"""Balance check results and swap remediation options."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from routing.models import Quote
from token_catalog.models import Token, TokenCounterpartPair


@dataclass(frozen=True)
class SwapOption:
    from_token: Token
    from_balance: Decimal
    swap_amount: Decimal
    estimated_output: Decimal
    route: Quote


@dataclass(frozen=True)
class BalanceCheckResult:
    """Subnet balance sufficiency for one order input.

    Shortfall figures are derived so they always agree with the balances.
    """

    token: Token
    required_amount: Decimal
    subnet_balance: Decimal
    layer1_balance: Decimal
    counterparts: TokenCounterpartPair
    swap_options: Tuple[SwapOption, ...] = ()
    generation: int = 0

    @property
    def shortfall(self) -> Decimal:
        return max(Decimal(0), self.required_amount - self.subnet_balance)

    @property
    def max_depositable(self) -> Decimal:
        return min(self.layer1_balance, self.shortfall)

    @property
    def remaining_shortfall(self) -> Decimal:
        return max(Decimal(0), self.shortfall - self.max_depositable)

    @property
    def has_enough_subnet(self) -> bool:
        return self.shortfall == 0

    @property
    def can_deposit(self) -> bool:
        return self.layer1_balance > 0 and self.counterparts.complete

    def to_dict(self) -> dict:
        return {
            "token": self.token.contract_id,
            "layer1_token": _token_id(self.counterparts.layer1),
            "subnet_token": _token_id(self.counterparts.subnet),
            "required_amount": str(self.required_amount),
            "subnet_balance": str(self.subnet_balance),
            "layer1_balance": str(self.layer1_balance),
            "shortfall": str(self.shortfall),
            "max_depositable": str(self.max_depositable),
            "remaining_shortfall": str(self.remaining_shortfall),
            "has_enough_subnet": self.has_enough_subnet,
            "can_deposit": self.can_deposit,
            "swap_options": [
                {
                    "from_token": option.from_token.contract_id,
                    "symbol": option.from_token.symbol,
                    "from_balance": str(option.from_balance),
                    "swap_amount": str(option.swap_amount),
                    "estimated_output": str(option.estimated_output),
                    "route": option.route.to_dict(),
                }
                for option in self.swap_options
            ],
            "generation": self.generation,
        }


def _token_id(token: Optional[Token]) -> Optional[str]:
    return token.contract_id if token is not None else None
