from .models import (
    ConditionDirection,
    DCAOrderIntent,
    DCAPlan,
    OrderRequest,
    PriceCondition,
    RatioCondition,
    SandwichOrderIntent,
    SandwichPlan,
    SandwichProjection,
    SingleOrderIntent,
    StrategyTag,
    StrategyType,
    TimeWindow,
    TriggerSet,
    interval_hours_for,
)
from .planner import OrderPlanner, PlanValidationError, UnimplementedIntentError, project_sandwich
from .pricing import PriceSource, PriceUnavailableError, StaticPriceSource, resolve_token_price
from .triggers import TriggerValidationError, require_submittable, validate_triggers

__all__ = [
    "ConditionDirection",
    "DCAOrderIntent",
    "DCAPlan",
    "OrderPlanner",
    "OrderRequest",
    "PlanValidationError",
    "PriceCondition",
    "PriceSource",
    "PriceUnavailableError",
    "RatioCondition",
    "SandwichOrderIntent",
    "SandwichPlan",
    "SandwichProjection",
    "SingleOrderIntent",
    "StaticPriceSource",
    "StrategyTag",
    "StrategyType",
    "TimeWindow",
    "TriggerSet",
    "TriggerValidationError",
    "UnimplementedIntentError",
    "interval_hours_for",
    "project_sandwich",
    "require_submittable",
    "resolve_token_price",
    "validate_triggers",
]
