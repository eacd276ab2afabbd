"""
Planner configuration.
Uses Pydantic Settings; values come from ORDER_PLANNER_* environment variables.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from token_catalog.units import DEFAULT_DECIMALS


class PlannerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ORDER_PLANNER_", extra="ignore")

    default_decimals: int = Field(default=DEFAULT_DECIMALS, ge=0)
    # Holdings at or below this amount are not offered as swap candidates.
    min_candidate_balance: Decimal = Decimal("0")
    max_swap_options: Optional[int] = Field(default=None, ge=1)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.strip().upper()


@lru_cache
def get_settings() -> PlannerSettings:
    return PlannerSettings()
