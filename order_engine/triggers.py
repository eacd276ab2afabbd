"""Trigger editing, validation and display helpers.

Every helper is a pure function of a ``TriggerSet`` and returns a new value;
nothing here evaluates a trigger. Whether several enabled conditions combine
with AND or OR is decided by the execution system that watches them.
"""

import math
from dataclasses import replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple, Union

from token_catalog.models import Token

from .models import (
    ConditionDirection,
    PriceCondition,
    RatioCondition,
    TimeWindow,
    TriggerSet,
)
from .planner import PlanValidationError

WILDCARD_CONDITION_TOKEN = "*"

TargetInput = Union[Decimal, str, int, float, None]


class TriggerValidationError(PlanValidationError):
    """Raised when a trigger set cannot be submitted as configured."""


def parse_target(value: TargetInput) -> Optional[Decimal]:
    """Parse a user-entered target; blank or unparsable input becomes None."""

    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def with_price_condition(
    triggers: TriggerSet,
    token: Optional[Token] = None,
    target: TargetInput = None,
    direction: ConditionDirection = ConditionDirection.GTE,
) -> TriggerSet:
    return replace(
        triggers,
        condition=PriceCondition(token=token, target=parse_target(target), direction=direction),
    )


def with_ratio_condition(
    triggers: TriggerSet,
    token: Optional[Token] = None,
    base_token: Optional[Token] = None,
    target: TargetInput = None,
    direction: ConditionDirection = ConditionDirection.GTE,
) -> TriggerSet:
    return replace(
        triggers,
        condition=RatioCondition(
            token=token,
            base_token=base_token,
            target=parse_target(target),
            direction=direction,
        ),
    )


def without_condition(triggers: TriggerSet) -> TriggerSet:
    return replace(triggers, condition=None)


def with_time_window(
    triggers: TriggerSet,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> TriggerSet:
    return replace(triggers, time_window=TimeWindow(start=start, end=end))


def without_time_window(triggers: TriggerSet) -> TriggerSet:
    return replace(triggers, time_window=None)


def with_manual_description(triggers: TriggerSet, description: str) -> TriggerSet:
    return replace(triggers, manual_description=description)


def bump_target(triggers: TriggerSet, percent: Decimal) -> TriggerSet:
    """Scale the active condition's target by ``1 + percent``."""

    condition = triggers.condition
    if condition is None or not condition.target:
        return triggers
    updated = condition.target * (Decimal(1) + Decimal(percent))
    return replace(triggers, condition=replace(condition, target=updated))


def validate_triggers(triggers: TriggerSet) -> Tuple[str, ...]:
    errors: List[str] = []
    condition = triggers.condition

    if isinstance(condition, PriceCondition) and condition.token is not None:
        if condition.target is None:
            errors.append("Please enter a target price for price trigger")
        elif condition.target <= 0:
            errors.append("Price trigger target price must be a positive number")

    if isinstance(condition, RatioCondition):
        if condition.token is None:
            errors.append("Please select a trigger token for ratio trigger")
        if condition.base_token is None:
            errors.append("Please select a base token for ratio trigger")
        if condition.target is None:
            errors.append("Please enter a target price for ratio trigger")
        elif condition.target <= 0:
            errors.append("Ratio trigger target price must be a positive number")
        if (
            condition.token is not None
            and condition.base_token is not None
            and condition.token.contract_id == condition.base_token.contract_id
        ):
            errors.append("Ratio trigger token and base token must be different")

    window = triggers.time_window
    if window is not None and window.start is not None and window.end is not None:
        if _is_aware(window.start) != _is_aware(window.end):
            errors.append("Time trigger start and end times must use the same timezone setting")
        elif window.end <= window.start:
            errors.append("Time trigger end time must be after start time")

    return tuple(errors)


def require_submittable(triggers: TriggerSet) -> None:
    condition = triggers.condition
    if isinstance(condition, PriceCondition) and condition.token is None:
        raise TriggerValidationError("Price trigger requires trigger token and target price")
    errors = validate_triggers(triggers)
    if errors:
        raise TriggerValidationError(errors[0])


def format_target(value: Decimal) -> str:
    """Show a target with four significant digits below 1, 2-4 decimals above."""

    if value == 0:
        return "0"
    number = float(value)
    magnitude = math.floor(math.log10(abs(number)))
    if number >= 1:
        places = min(4, max(2, 4 - magnitude))
    else:
        places = min(8, max(2, 4 - magnitude - 1))
    return f"{number:.{places}f}"


def price_trigger_display(triggers: TriggerSet) -> str:
    condition = triggers.condition
    if not isinstance(condition, PriceCondition):
        return ""
    if condition.token is None or condition.target is None:
        return ""
    return f"{condition.token.symbol} {condition.direction.symbol} {format_target(condition.target)} USD"


def ratio_trigger_display(triggers: TriggerSet) -> str:
    condition = triggers.condition
    if not isinstance(condition, RatioCondition):
        return ""
    if condition.token is None or condition.base_token is None or condition.target is None:
        return ""
    return (
        f"{condition.token.symbol} {condition.direction.symbol} "
        f"{format_target(condition.target)} {condition.base_token.symbol}"
    )


def time_trigger_display(triggers: TriggerSet) -> str:
    window = triggers.time_window
    if window is None:
        return ""
    if window.start is not None and window.end is not None:
        return f"Execute between {_format_time(window.start)} and {_format_time(window.end)}"
    if window.start is not None:
        return f"Execute after {_format_time(window.start)}"
    if window.end is not None:
        return f"Execute until {_format_time(window.end)}"
    return "Execute immediately"


def trigger_summary(triggers: TriggerSet) -> Dict[str, object]:
    return {
        "price": price_trigger_display(triggers),
        "ratio": ratio_trigger_display(triggers),
        "time": time_trigger_display(triggers),
        "is_manual": triggers.is_manual,
        "manual_description": triggers.manual_description if triggers.is_manual else "",
        "errors": list(validate_triggers(triggers)),
    }


def condition_payload(triggers: TriggerSet) -> Dict[str, Optional[str]]:
    """Condition fields of the order-creation body.

    A time-only set is sent as the wildcard condition so it fires once the
    window opens. Manual orders carry no condition at all.
    """

    condition = triggers.condition
    if isinstance(condition, PriceCondition):
        if condition.token is None or condition.target is None:
            raise TriggerValidationError("Price trigger requires trigger token and target price")
        return {
            "conditionToken": condition.token.contract_id,
            "baseAsset": None,
            "targetPrice": _plain(condition.target),
            "direction": condition.direction.wire_value,
        }
    if isinstance(condition, RatioCondition):
        if condition.token is None or condition.base_token is None or condition.target is None:
            raise TriggerValidationError(
                "Ratio trigger requires trigger token, base token, and target price"
            )
        return {
            "conditionToken": condition.token.contract_id,
            "baseAsset": condition.base_token.contract_id,
            "targetPrice": _plain(condition.target),
            "direction": condition.direction.wire_value,
        }
    if triggers.has_time_trigger:
        return wildcard_condition_payload()
    return {"conditionToken": None, "baseAsset": None, "targetPrice": None, "direction": None}


def wildcard_condition_payload() -> Dict[str, Optional[str]]:
    return {
        "conditionToken": WILDCARD_CONDITION_TOKEN,
        "baseAsset": None,
        "targetPrice": "0",
        "direction": ConditionDirection.GTE.wire_value,
    }


def _plain(value: Decimal) -> str:
    return format(value.normalize(), "f")


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


def _format_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M %Z").strip()
