"""Domain models for the token catalog."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class TokenKind(Enum):
    LAYER1 = "LAYER1"
    SUBNET = "SUBNET"


@dataclass(frozen=True)
class Token:
    """A catalog token, referenced by contract id everywhere else."""

    contract_id: str
    symbol: str
    decimals: Optional[int] = None
    kind: TokenKind = TokenKind.LAYER1
    base_id: Optional[str] = None
    identifier: Optional[str] = None

    @property
    def is_subnet(self) -> bool:
        return self.kind == TokenKind.SUBNET

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "contract_id": self.contract_id,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "kind": self.kind.value,
        }
        if self.base_id is not None:
            data["base_id"] = self.base_id
        if self.identifier is not None:
            data["identifier"] = self.identifier
        return data

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "Token":
        for field in ("contract_id", "symbol"):
            if not data.get(field):
                raise ValueError(f"Token entry is missing {field}: {data!r}")
        decimals = data.get("decimals")
        return Token(
            contract_id=str(data["contract_id"]),
            symbol=str(data["symbol"]),
            decimals=int(decimals) if decimals is not None else None,
            kind=TokenKind(str(data.get("kind", TokenKind.LAYER1.value)).upper()),
            base_id=data.get("base_id") or None,
            identifier=data.get("identifier") or None,
        )


@dataclass(frozen=True)
class TokenCounterpartPair:
    layer1: Optional[Token] = None
    subnet: Optional[Token] = None

    @property
    def complete(self) -> bool:
        return self.layer1 is not None and self.subnet is not None
