"""Subnet balance checks with deposit and swap remediation."""

import asyncio
import logging
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Set, Tuple

from order_engine.config import PlannerSettings, get_settings
from order_engine.planner import PlanValidationError
from token_catalog.duality import CounterpartIndex
from token_catalog.models import Token
from token_catalog.units import decimals_for, from_base_units, to_base_units

from .models import BalanceCheckResult, SwapOption
from .sources import BalanceSource, QuoteSource

logger = logging.getLogger(__name__)


class BalanceResolver:
    def __init__(
        self,
        index: CounterpartIndex,
        balances: BalanceSource,
        quotes: QuoteSource,
        settings: Optional[PlannerSettings] = None,
    ) -> None:
        self._index = index
        self._balances = balances
        self._quotes = quotes
        self._settings = settings or get_settings()

    async def check_balance(
        self,
        token: Token,
        required_amount: Decimal,
        owner_id: str,
        generation: int = 0,
        is_current: Optional[Callable[[], bool]] = None,
    ) -> Optional[BalanceCheckResult]:
        """Check that ``owner_id`` holds ``required_amount`` of the subnet version of ``token``.

        When the balances alone cannot cover the amount, every other holding is
        quoted as a swap source. Returns None only if ``is_current`` reports the
        request was superseded.
        """

        required_amount = Decimal(required_amount)
        if not required_amount.is_finite() or required_amount <= 0:
            raise PlanValidationError("Required amount must be positive.")
        pair = self._index.pair_for(token)
        subnet_token = pair.subnet if pair.subnet is not None else (token if token.is_subnet else None)
        layer1_token = pair.layer1 if pair.layer1 is not None else (None if token.is_subnet else token)

        subnet_balance, layer1_balance = await asyncio.gather(
            self._read_balance(owner_id, subnet_token),
            self._read_balance(owner_id, layer1_token),
        )
        result = BalanceCheckResult(
            token=token,
            required_amount=required_amount,
            subnet_balance=subnet_balance,
            layer1_balance=layer1_balance,
            counterparts=pair,
            generation=generation,
        )
        if result.remaining_shortfall <= 0:
            return result

        if is_current is not None and not is_current():
            logger.debug("Balance check %d superseded before swap search", generation)
            return None

        excluded = {token.contract_id}
        excluded.update(t.contract_id for t in (pair.layer1, pair.subnet) if t is not None)
        options = await self._swap_options(token, result.remaining_shortfall, owner_id, excluded)

        if is_current is not None and not is_current():
            logger.debug("Balance check %d superseded during swap search", generation)
            return None
        return BalanceCheckResult(
            token=token,
            required_amount=required_amount,
            subnet_balance=subnet_balance,
            layer1_balance=layer1_balance,
            counterparts=pair,
            swap_options=options,
            generation=generation,
        )

    async def _read_balance(self, owner_id: str, token: Optional[Token]) -> Decimal:
        if token is None:
            return Decimal(0)
        try:
            balance = await self._balances.get_balance(owner_id, token.contract_id)
        except Exception as exc:
            logger.warning("Balance read failed for %s: %s", token.contract_id, exc)
            return Decimal(0)
        return Decimal(balance) if balance is not None else Decimal(0)

    async def _swap_options(
        self, target: Token, remaining: Decimal, owner_id: str, excluded: Set[str]
    ) -> Tuple[SwapOption, ...]:
        try:
            holdings = await self._balances.list_holdings(owner_id)
        except Exception as exc:
            logger.warning("Holdings listing failed for %s: %s", owner_id, exc)
            return ()

        candidates: Dict[str, Decimal] = {}
        for token_id, balance in holdings.items():
            balance = Decimal(balance)
            if token_id in excluded or balance <= self._settings.min_candidate_balance:
                continue
            if token_id not in self._index:
                logger.debug("Skipping uncatalogued holding %s", token_id)
                continue
            candidates[token_id] = balance

        found = await asyncio.gather(
            *(
                self._swap_option(target, self._index.require(token_id), balance, remaining)
                for token_id, balance in candidates.items()
            )
        )
        options: List[SwapOption] = [
            option for option in found if option is not None and option.estimated_output > 0
        ]
        options.sort(key=lambda option: (-option.estimated_output, option.from_token.symbol))
        if self._settings.max_swap_options is not None:
            options = options[: self._settings.max_swap_options]
        return tuple(options)

    async def _swap_option(
        self, target: Token, candidate: Token, balance: Decimal, remaining: Decimal
    ) -> Optional[SwapOption]:
        default = self._settings.default_decimals
        target_decimals = decimals_for(target, default)
        candidate_decimals = decimals_for(candidate, default)
        try:
            reverse = await self._quotes.quote(
                target.contract_id,
                candidate.contract_id,
                to_base_units(remaining, target_decimals),
            )
            swap_amount = from_base_units(reverse.total_out, candidate_decimals)
            if swap_amount > balance:
                return None
            forward = await self._quotes.quote(
                candidate.contract_id, target.contract_id, reverse.total_out
            )
        except Exception as exc:
            logger.warning("Quote failed for %s -> %s: %s", candidate.symbol, target.symbol, exc)
            return None

        return SwapOption(
            from_token=candidate,
            from_balance=balance,
            swap_amount=swap_amount,
            estimated_output=from_base_units(forward.total_out, target_decimals),
            route=forward,
        )


class BalanceCheckSession:
    """Keeps only the newest balance check for one editing session.

    Each request takes a new generation; a result whose generation is no
    longer current is discarded and ``latest`` is left untouched.
    """

    def __init__(self, resolver: BalanceResolver) -> None:
        self._resolver = resolver
        self._generation = 0
        self.latest: Optional[BalanceCheckResult] = None

    @property
    def generation(self) -> int:
        return self._generation

    def invalidate(self) -> None:
        self._generation += 1

    async def request(
        self, token: Token, required_amount: Decimal, owner_id: str
    ) -> Optional[BalanceCheckResult]:
        self._generation += 1
        generation = self._generation

        def is_current() -> bool:
            return generation == self._generation

        result = await self._resolver.check_balance(
            token, required_amount, owner_id, generation=generation, is_current=is_current
        )
        if result is None or not is_current():
            logger.debug("Discarding stale balance check %d", generation)
            return None
        self.latest = result
        return result
