"""Layer-1 / subnet counterpart resolution over a token catalog snapshot."""

from typing import Dict, Iterable, Optional, Tuple

from .models import Token, TokenCounterpartPair, TokenKind


def build_counterparts(tokens: Iterable[Token]) -> Dict[str, TokenCounterpartPair]:
    """Map each base identity to its Layer-1 and subnet tokens.

    Layer-1 tokens seed the map first so the result does not depend on the
    order of the catalog. Subnet tokens without a base reference are left out.
    """

    tokens = tuple(tokens)
    pairs: Dict[str, TokenCounterpartPair] = {}
    for token in tokens:
        if token.kind == TokenKind.LAYER1:
            pairs[token.contract_id] = TokenCounterpartPair(layer1=token, subnet=None)

    for token in tokens:
        if token.kind != TokenKind.SUBNET or not token.base_id:
            continue
        existing = pairs.get(token.base_id)
        if existing is None:
            pairs[token.base_id] = TokenCounterpartPair(layer1=None, subnet=token)
        elif existing.subnet is None:
            pairs[token.base_id] = TokenCounterpartPair(layer1=existing.layer1, subnet=token)

    return pairs


class CounterpartIndex:
    """Read-only catalog snapshot; rebuild it when the catalog changes."""

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens: Dict[str, Token] = {}
        for token in tokens:
            self._tokens.setdefault(token.contract_id, token)
        self._pairs = build_counterparts(self._tokens.values())

    @property
    def pairs(self) -> Dict[str, TokenCounterpartPair]:
        return dict(self._pairs)

    def __contains__(self, contract_id: object) -> bool:
        return contract_id in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def token(self, contract_id: str) -> Optional[Token]:
        return self._tokens.get(contract_id)

    def require(self, contract_id: str) -> Token:
        token = self._tokens.get(contract_id)
        if token is None:
            raise KeyError(f"Unknown token: {contract_id}")
        return token

    def base_id_of(self, token: Token) -> str:
        if token.kind == TokenKind.SUBNET and token.base_id:
            return token.base_id
        return token.contract_id

    def pair_for(self, token: Optional[Token]) -> TokenCounterpartPair:
        if token is None:
            return TokenCounterpartPair()
        pair = self._pairs.get(self.base_id_of(token))
        if pair is None:
            return TokenCounterpartPair()
        # A second subnet token sharing a base id is not part of the pair.
        if token.kind == TokenKind.SUBNET and pair.subnet != token:
            return TokenCounterpartPair(layer1=pair.layer1, subnet=None)
        return pair

    def has_both_versions(self, token: Optional[Token]) -> bool:
        return self.pair_for(token).complete

    def counterpart_of(self, token: Optional[Token]) -> Optional[Token]:
        pair = self.pair_for(token)
        if token is None or not pair.complete:
            return None
        return pair.layer1 if token.kind == TokenKind.SUBNET else pair.subnet

    def contract_id_for(self, token: Token, use_subnet: bool) -> str:
        """Contract id of the layer the user chose, falling back to the token itself."""

        pair = self.pair_for(token)
        if use_subnet and pair.subnet is not None:
            return pair.subnet.contract_id
        if not use_subnet and pair.layer1 is not None:
            return pair.layer1.contract_id
        return token.contract_id

    def layer1_tokens(self) -> Tuple[Token, ...]:
        return _sorted_by_symbol(t for t in self._tokens.values() if t.kind == TokenKind.LAYER1)

    def subnet_tokens(self) -> Tuple[Token, ...]:
        return _sorted_by_symbol(t for t in self._tokens.values() if t.kind == TokenKind.SUBNET)


def _sorted_by_symbol(tokens: Iterable[Token]) -> Tuple[Token, ...]:
    return tuple(sorted(tokens, key=lambda token: (token.symbol, token.contract_id)))
