"""Domain models for the order planning engine."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Union

from token_catalog.models import Token


class ConditionDirection(Enum):
    GTE = "gte"
    LTE = "lte"

    @property
    def symbol(self) -> str:
        return "≥" if self == ConditionDirection.GTE else "≤"

    @property
    def wire_value(self) -> str:
        return "gt" if self == ConditionDirection.GTE else "lt"

    @staticmethod
    def parse(value: str) -> "ConditionDirection":
        normalized = value.strip().lower()
        if normalized in ("gte", "gt", ">=", "≥"):
            return ConditionDirection.GTE
        if normalized in ("lte", "lt", "<=", "≤"):
            return ConditionDirection.LTE
        raise ValueError(f"Unsupported condition direction: {value}")


@dataclass(frozen=True)
class PriceCondition:
    """Token price against USD."""

    token: Optional[Token] = None
    target: Optional[Decimal] = None
    direction: ConditionDirection = ConditionDirection.GTE


@dataclass(frozen=True)
class RatioCondition:
    """Token price denominated in another token."""

    token: Optional[Token] = None
    base_token: Optional[Token] = None
    target: Optional[Decimal] = None
    direction: ConditionDirection = ConditionDirection.GTE


Condition = Union[PriceCondition, RatioCondition]


@dataclass(frozen=True)
class TimeWindow:
    start: Optional[datetime] = None
    end: Optional[datetime] = None


@dataclass(frozen=True)
class TriggerSet:
    """Conditions attached to an order.

    Price and ratio conditions share the single ``condition`` slot, so only
    one of them can be active. The time window is independent of both.
    """

    condition: Optional[Condition] = None
    time_window: Optional[TimeWindow] = None
    manual_description: str = ""

    @property
    def has_price_trigger(self) -> bool:
        return isinstance(self.condition, PriceCondition)

    @property
    def has_ratio_trigger(self) -> bool:
        return isinstance(self.condition, RatioCondition)

    @property
    def has_time_trigger(self) -> bool:
        return self.time_window is not None

    @property
    def is_manual(self) -> bool:
        return not (self.has_price_trigger or self.has_ratio_trigger or self.has_time_trigger)


class StrategyType(Enum):
    SINGLE = "single"
    DCA = "dca"
    SANDWICH = "sandwich"


@dataclass(frozen=True)
class StrategyTag:
    strategy_id: str
    strategy_type: StrategyType
    position: int
    size: int


@dataclass(frozen=True)
class OrderRequest:
    sequence: int
    input_token: Token
    output_token: Token
    amount: Decimal
    triggers: TriggerSet = field(default_factory=TriggerSet)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    strategy: Optional[StrategyTag] = None


@dataclass(frozen=True)
class SingleOrderIntent:
    input_token: Optional[Token]
    output_token: Optional[Token]
    amount: Decimal
    triggers: TriggerSet = field(default_factory=TriggerSet)


# Named DCA frequencies and their interval in hours.
FREQUENCY_INTERVAL_HOURS = {
    "1minute": Decimal(1) / Decimal(60),
    "5minutes": Decimal(5) / Decimal(60),
    "15minutes": Decimal("0.25"),
    "30minutes": Decimal("0.5"),
    "hourly": Decimal(1),
    "daily": Decimal(24),
    "weekly": Decimal(168),
    "monthly": Decimal(720),
}


def interval_hours_for(frequency: str) -> Decimal:
    """Interval for a named frequency; unknown names fall back to daily."""

    return FREQUENCY_INTERVAL_HOURS.get(frequency.strip().lower(), FREQUENCY_INTERVAL_HOURS["daily"])


@dataclass(frozen=True)
class DCAPlan:
    total_amount: Decimal
    number_of_slices: int
    interval_hours: Decimal
    start_time: datetime

    @property
    def amount_per_slice(self) -> Decimal:
        return Decimal(self.total_amount) / Decimal(self.number_of_slices)

    @property
    def interval(self) -> timedelta:
        return timedelta(hours=float(self.interval_hours))

    def slice_window(self, index: int) -> Tuple[datetime, datetime]:
        interval = self.interval
        return (
            self.start_time + index * interval,
            self.start_time + (index + 1) * interval,
        )


@dataclass(frozen=True)
class DCAOrderIntent:
    input_token: Optional[Token]
    output_token: Optional[Token]
    plan: DCAPlan
    triggers: TriggerSet = field(default_factory=TriggerSet)
    strategy_id: Optional[str] = None


@dataclass(frozen=True)
class SandwichPlan:
    usd_amount: Decimal
    buy_price: Decimal
    sell_price: Decimal


@dataclass(frozen=True)
class SandwichProjection:
    buy_leg_amount: Decimal
    sell_leg_amount: Decimal
    profit: Decimal
    profit_percentage: Decimal
    spread_percentage: Decimal


@dataclass(frozen=True)
class SandwichOrderIntent:
    """Bracket around the current price between token A and token B.

    ``watch_token`` is the token whose price the legs trigger on (token B when
    unset); with a ``base_token`` the legs use a ratio condition instead of a
    USD price condition.
    """

    token_a: Optional[Token]
    token_b: Optional[Token]
    plan: SandwichPlan
    token_a_price: Decimal
    token_b_price: Decimal
    watch_token: Optional[Token] = None
    base_token: Optional[Token] = None
    strategy_id: Optional[str] = None


OrderIntent = Union[SingleOrderIntent, DCAOrderIntent, SandwichOrderIntent]
