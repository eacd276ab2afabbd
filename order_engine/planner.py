"""Deterministic order decomposition with validation."""

import uuid
from decimal import Decimal
from typing import Callable, Optional, Tuple

from token_catalog.models import Token

from .models import (
    ConditionDirection,
    DCAOrderIntent,
    DCAPlan,
    OrderIntent,
    OrderRequest,
    PriceCondition,
    RatioCondition,
    SandwichOrderIntent,
    SandwichPlan,
    SandwichProjection,
    SingleOrderIntent,
    StrategyTag,
    StrategyType,
    TriggerSet,
)


class PlanValidationError(ValueError):
    """Raised when an intent or a decomposed plan violates hard validation rules."""


class UnimplementedIntentError(ValueError):
    """Raised when the planner cannot handle the provided intent."""


class OrderPlanner:
    """Expands one trading intent into the order requests that implement it."""

    def __init__(self, id_factory: Optional[Callable[[], str]] = None) -> None:
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

    def plan(self, intent: OrderIntent) -> Tuple[OrderRequest, ...]:
        if isinstance(intent, SingleOrderIntent):
            requests = plan_single(intent)
        elif isinstance(intent, DCAOrderIntent):
            requests = plan_dca(intent, strategy_id=intent.strategy_id or self._id_factory())
        elif isinstance(intent, SandwichOrderIntent):
            requests = plan_sandwich(intent, strategy_id=intent.strategy_id or self._id_factory())
        else:
            raise UnimplementedIntentError("Unsupported intent type.")

        validate_requests(requests)
        return requests


def plan_single(intent: SingleOrderIntent) -> Tuple[OrderRequest, ...]:
    input_token, output_token = _require_tokens(intent.input_token, intent.output_token)
    amount = _require_positive(intent.amount, "Amount")
    return (
        OrderRequest(
            sequence=1,
            input_token=input_token,
            output_token=output_token,
            amount=amount,
            triggers=intent.triggers,
            valid_from=None,
            valid_to=None,
        ),
    )


def plan_dca(intent: DCAOrderIntent, strategy_id: str) -> Tuple[OrderRequest, ...]:
    input_token, output_token = _require_tokens(intent.input_token, intent.output_token)
    schedule = intent.plan
    _validate_dca_plan(schedule)

    amount = schedule.amount_per_slice
    size = schedule.number_of_slices
    requests = []
    for index in range(size):
        valid_from, valid_to = schedule.slice_window(index)
        requests.append(
            OrderRequest(
                sequence=index + 1,
                input_token=input_token,
                output_token=output_token,
                amount=amount,
                triggers=intent.triggers,
                valid_from=valid_from,
                valid_to=valid_to,
                strategy=StrategyTag(
                    strategy_id=strategy_id,
                    strategy_type=StrategyType.DCA,
                    position=index,
                    size=size,
                ),
            )
        )
    return tuple(requests)


def plan_sandwich(intent: SandwichOrderIntent, strategy_id: str) -> Tuple[OrderRequest, ...]:
    token_a, token_b = _require_tokens(intent.token_a, intent.token_b)
    projection = project_sandwich(intent.plan, intent.token_a_price, intent.token_b_price)

    watch_token = intent.watch_token or token_b
    # A->B sells high, B->A buys back low.
    legs = (
        (token_a, token_b, projection.buy_leg_amount, intent.plan.sell_price, ConditionDirection.GTE),
        (token_b, token_a, projection.sell_leg_amount, intent.plan.buy_price, ConditionDirection.LTE),
    )
    requests = []
    for position, (input_token, output_token, amount, target, direction) in enumerate(legs):
        if intent.base_token is not None:
            condition = RatioCondition(
                token=watch_token,
                base_token=intent.base_token,
                target=target,
                direction=direction,
            )
        else:
            condition = PriceCondition(token=watch_token, target=target, direction=direction)
        requests.append(
            OrderRequest(
                sequence=position + 1,
                input_token=input_token,
                output_token=output_token,
                amount=amount,
                triggers=TriggerSet(condition=condition),
                strategy=StrategyTag(
                    strategy_id=strategy_id,
                    strategy_type=StrategyType.SANDWICH,
                    position=position,
                    size=len(legs),
                ),
            )
        )
    return tuple(requests)


def project_sandwich(
    plan: SandwichPlan, token_a_price: Decimal, token_b_price: Decimal
) -> SandwichProjection:
    _validate_sandwich_plan(plan)
    price_a = _require_positive(token_a_price, "Token A price")
    price_b = _require_positive(token_b_price, "Token B price")

    usd_amount = Decimal(plan.usd_amount)
    buy_price = Decimal(plan.buy_price)
    sell_price = Decimal(plan.sell_price)
    profit = (usd_amount / buy_price) * sell_price - usd_amount
    return SandwichProjection(
        buy_leg_amount=usd_amount / price_a,
        sell_leg_amount=usd_amount / price_b,
        profit=profit,
        profit_percentage=profit / usd_amount * 100,
        spread_percentage=(sell_price - buy_price) / buy_price * 100,
    )


def validate_requests(requests: Tuple[OrderRequest, ...]) -> None:
    if not requests:
        raise PlanValidationError("Plan must include at least one order request.")

    sequences = [request.sequence for request in requests]
    if sequences != list(range(1, len(requests) + 1)):
        raise PlanValidationError("Order requests must be numbered in order from 1.")

    previous_end = None
    for request in requests:
        if request.input_token.contract_id == request.output_token.contract_id:
            raise PlanValidationError("Input token must differ from output token.")
        if request.amount <= 0:
            raise PlanValidationError("Order amount must be positive.")
        if request.valid_from is not None and request.valid_to is not None:
            if request.valid_to <= request.valid_from:
                raise PlanValidationError("Validity window must end after it starts.")
            if previous_end is not None and request.valid_from < previous_end:
                raise PlanValidationError("Validity windows must not overlap.")
            previous_end = request.valid_to


def _validate_dca_plan(schedule: DCAPlan) -> None:
    if schedule.number_of_slices < 1:
        raise PlanValidationError("DCA plan needs at least one slice.")
    _require_positive(schedule.total_amount, "Total amount")
    _require_positive(schedule.interval_hours, "Interval")


def _validate_sandwich_plan(plan: SandwichPlan) -> None:
    _require_positive(plan.usd_amount, "USD amount")
    _require_positive(plan.buy_price, "Buy price")
    _require_positive(plan.sell_price, "Sell price")
    if Decimal(plan.sell_price) <= Decimal(plan.buy_price):
        raise PlanValidationError("Sell price must be higher than buy price.")


def _require_tokens(
    input_token: Optional[Token], output_token: Optional[Token]
) -> Tuple[Token, Token]:
    if input_token is None or output_token is None:
        raise PlanValidationError("Please select both tokens.")
    if input_token.contract_id == output_token.contract_id:
        raise PlanValidationError("Input token must differ from output token.")
    return input_token, output_token


def _require_positive(value, label: str) -> Decimal:
    if value is None:
        raise PlanValidationError(f"{label} is required.")
    number = Decimal(value)
    if not number.is_finite() or number <= 0:
        raise PlanValidationError(f"{label} must be positive.")
    return number
