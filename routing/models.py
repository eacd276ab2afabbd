"""Route quote models consumed from the external router."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class Quote:
    """A routed quote; amounts are integer base units.

    ``legs`` is non-empty for a decomposed route, e.g. burning a pooled
    position into its two underlying assets and swapping each of them.
    """

    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    path: Tuple[str, ...] = ()
    price_impact: Optional[Decimal] = None
    legs: Tuple["Quote", ...] = ()

    @property
    def total_out(self) -> int:
        if self.legs:
            return sum(leg.amount_out for leg in self.legs)
        return self.amount_out

    @property
    def hop_count(self) -> int:
        if self.legs:
            return max(leg.hop_count for leg in self.legs)
        return max(len(self.path) - 1, 0)

    def to_dict(self) -> Dict[str, object]:
        return {
            "token_in": self.token_in,
            "token_out": self.token_out,
            "amount_in": self.amount_in,
            "amount_out": self.amount_out,
            "total_out": self.total_out,
            "path": list(self.path),
            "price_impact": str(self.price_impact) if self.price_impact is not None else None,
            "legs": [leg.to_dict() for leg in self.legs],
        }

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "Quote":
        impact = data.get("price_impact")
        return Quote(
            token_in=str(data["token_in"]),
            token_out=str(data["token_out"]),
            amount_in=int(data["amount_in"]),
            amount_out=int(data.get("amount_out", 0)),
            path=tuple(str(item) for item in data.get("path", ())),
            price_impact=Decimal(str(impact)) if impact is not None else None,
            legs=tuple(Quote.from_dict(leg) for leg in data.get("legs", ())),
        )


class SecurityLevel(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class RouteSummary:
    amount_out: int
    hop_count: int
    price_impact: Optional[Decimal]
    security_level: SecurityLevel
    decomposed: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "amount_out": self.amount_out,
            "hop_count": self.hop_count,
            "price_impact": str(self.price_impact) if self.price_impact is not None else None,
            "security_level": self.security_level.value,
            "decomposed": self.decomposed,
        }
