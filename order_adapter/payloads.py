"""Translate order requests into order-creation payloads."""

from datetime import datetime
from typing import Optional, Tuple

from order_engine.config import PlannerSettings, get_settings
from order_engine.models import OrderRequest, StrategyType
from order_engine.triggers import (
    TriggerValidationError,
    condition_payload,
    require_submittable,
    wildcard_condition_payload,
)
from token_catalog.units import decimals_for, to_base_units

from .models import OrderPayload


class PayloadError(ValueError):
    """Raised when a request cannot be expressed as an order payload."""


def requests_to_payloads(
    requests: Tuple[OrderRequest, ...],
    owner: str,
    settings: Optional[PlannerSettings] = None,
) -> Tuple[OrderPayload, ...]:
    return tuple(request_to_payload(request, owner, settings) for request in requests)


def request_to_payload(
    request: OrderRequest,
    owner: str,
    settings: Optional[PlannerSettings] = None,
    recipient: Optional[str] = None,
) -> OrderPayload:
    settings = settings or get_settings()
    if not owner:
        raise PayloadError("Order owner is required.")
    if not request.input_token.is_subnet:
        raise PayloadError(
            f"Order {request.sequence}: {request.input_token.symbol} must be deposited "
            "to the subnet before it can be traded."
        )

    try:
        require_submittable(request.triggers)
    except TriggerValidationError as exc:
        raise PayloadError(f"Order {request.sequence}: {exc}") from exc

    amount_in = to_base_units(
        request.amount, decimals_for(request.input_token, settings.default_decimals)
    )
    if amount_in <= 0:
        raise PayloadError(f"Order {request.sequence}: amount is below the smallest unit.")

    strategy = request.strategy
    is_dca_slice = strategy is not None and strategy.strategy_type == StrategyType.DCA
    if request.triggers.is_manual and is_dca_slice:
        condition = wildcard_condition_payload()
    else:
        condition = condition_payload(request.triggers)

    description = None
    if request.triggers.is_manual and not is_dca_slice:
        description = request.triggers.manual_description or None

    return OrderPayload(
        sequence=request.sequence,
        owner=owner,
        recipient=recipient or owner,
        input_token=request.input_token.contract_id,
        output_token=request.output_token.contract_id,
        amount_in=amount_in,
        condition_token=condition["conditionToken"],
        base_asset=condition["baseAsset"],
        target_price=condition["targetPrice"],
        direction=condition["direction"],
        valid_from=_iso(request.valid_from),
        valid_to=_iso(request.valid_to),
        description=description,
        strategy_id=strategy.strategy_id if strategy else None,
        strategy_type=strategy.strategy_type.value if strategy else None,
        strategy_size=strategy.size if strategy else None,
        strategy_position=strategy.position if strategy else None,
    )


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None
