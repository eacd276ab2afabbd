"""JSON-friendly conversion of plans, shared by the CLI and the API."""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Tuple

from token_catalog.duality import CounterpartIndex
from token_catalog.models import Token

from .models import (
    ConditionDirection,
    OrderRequest,
    PriceCondition,
    RatioCondition,
    StrategyTag,
    StrategyType,
    TimeWindow,
    TriggerSet,
)
from .planner import PlanValidationError


def triggers_to_dict(triggers: TriggerSet) -> dict:
    condition = triggers.condition
    condition_data: Optional[dict] = None
    if isinstance(condition, PriceCondition):
        condition_data = {
            "kind": "price",
            "token": _token_id(condition.token),
            "target": decimal_text(condition.target),
            "direction": condition.direction.value,
        }
    elif isinstance(condition, RatioCondition):
        condition_data = {
            "kind": "ratio",
            "token": _token_id(condition.token),
            "base_token": _token_id(condition.base_token),
            "target": decimal_text(condition.target),
            "direction": condition.direction.value,
        }

    window = triggers.time_window
    window_data = None
    if window is not None:
        window_data = {"start": _iso(window.start), "end": _iso(window.end)}

    return {
        "condition": condition_data,
        "time_window": window_data,
        "manual_description": triggers.manual_description,
    }


def triggers_from_dict(data: Optional[dict], index: CounterpartIndex) -> TriggerSet:
    if not data:
        return TriggerSet()

    condition = None
    condition_data = data.get("condition")
    if condition_data:
        kind = str(condition_data.get("kind", "price")).lower()
        direction = ConditionDirection.parse(str(condition_data.get("direction", "gte")))
        token = _lookup(index, condition_data.get("token"))
        target = parse_decimal(condition_data.get("target"), "Target price", required=False)
        if kind == "price":
            condition = PriceCondition(token=token, target=target, direction=direction)
        elif kind == "ratio":
            condition = RatioCondition(
                token=token,
                base_token=_lookup(index, condition_data.get("base_token")),
                target=target,
                direction=direction,
            )
        else:
            raise PlanValidationError(f"Unsupported condition kind: {kind}")

    time_window = None
    window_data = data.get("time_window")
    if window_data is not None:
        time_window = TimeWindow(
            start=parse_datetime(window_data.get("start")),
            end=parse_datetime(window_data.get("end")),
        )

    return TriggerSet(
        condition=condition,
        time_window=time_window,
        manual_description=str(data.get("manual_description") or ""),
    )


def request_to_dict(request: OrderRequest) -> dict:
    strategy = request.strategy
    return {
        "sequence": request.sequence,
        "input_token": request.input_token.contract_id,
        "output_token": request.output_token.contract_id,
        "amount": decimal_text(request.amount),
        "triggers": triggers_to_dict(request.triggers),
        "valid_from": _iso(request.valid_from),
        "valid_to": _iso(request.valid_to),
        "strategy": None
        if strategy is None
        else {
            "strategy_id": strategy.strategy_id,
            "strategy_type": strategy.strategy_type.value,
            "position": strategy.position,
            "size": strategy.size,
        },
    }


def request_from_dict(data: dict, index: CounterpartIndex) -> OrderRequest:
    strategy_data = data.get("strategy")
    strategy = None
    if strategy_data:
        strategy = StrategyTag(
            strategy_id=str(strategy_data["strategy_id"]),
            strategy_type=StrategyType(str(strategy_data["strategy_type"]).lower()),
            position=int(strategy_data["position"]),
            size=int(strategy_data["size"]),
        )
    return OrderRequest(
        sequence=int(data["sequence"]),
        input_token=_require(index, data.get("input_token")),
        output_token=_require(index, data.get("output_token")),
        amount=parse_decimal(data.get("amount"), "Amount"),
        triggers=triggers_from_dict(data.get("triggers"), index),
        valid_from=parse_datetime(data.get("valid_from")),
        valid_to=parse_datetime(data.get("valid_to")),
        strategy=strategy,
    )


def plan_to_dict(requests: Iterable[OrderRequest]) -> dict:
    """Requests plus every token they reference, so the plan loads on its own."""

    requests = tuple(requests)
    tokens: Dict[str, Token] = {}
    for request in requests:
        for token in _referenced_tokens(request):
            tokens.setdefault(token.contract_id, token)
    return {
        "tokens": [token.to_dict() for token in tokens.values()],
        "requests": [request_to_dict(request) for request in requests],
    }


def plan_from_dict(
    data: dict, index: Optional[CounterpartIndex] = None
) -> Tuple[OrderRequest, ...]:
    if index is None:
        index = CounterpartIndex(Token.from_dict(item) for item in data.get("tokens", []))
    return tuple(request_from_dict(item, index) for item in data.get("requests", []))


def parse_decimal(value, label: str, required: bool = True) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise PlanValidationError(f"{label} is required.")
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise PlanValidationError(f"{label} must be a number.") from exc
    if not number.is_finite():
        raise PlanValidationError(f"{label} must be a number.")
    return number


def parse_datetime(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise PlanValidationError(f"Invalid timestamp: {value}") from exc


def _referenced_tokens(request: OrderRequest) -> List[Token]:
    tokens = [request.input_token, request.output_token]
    condition = request.triggers.condition
    if condition is not None and condition.token is not None:
        tokens.append(condition.token)
    if isinstance(condition, RatioCondition) and condition.base_token is not None:
        tokens.append(condition.base_token)
    return tokens


def _lookup(index: CounterpartIndex, contract_id) -> Optional[Token]:
    if not contract_id:
        return None
    return _require(index, contract_id)


def _require(index: CounterpartIndex, contract_id) -> Token:
    token = index.token(str(contract_id)) if contract_id else None
    if token is None:
        raise PlanValidationError(f"Unknown token: {contract_id}")
    return token


def _token_id(token: Optional[Token]) -> Optional[str]:
    return token.contract_id if token is not None else None


def decimal_text(value: Optional[Decimal]) -> Optional[str]:
    """Plain notation without trailing zeros, e.g. ``2E+4`` becomes ``20000``."""

    if value is None:
        return None
    return format(Decimal(value).normalize(), "f")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None
