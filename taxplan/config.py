from __future__ import annotations

import os
from decimal import Decimal
from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic import ConfigDict, field_validator

from taxplan.core.models import MAX_AMOUNT

ENV_BOOL_TRUE = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in ENV_BOOL_TRUE


def _clamp_step(step: int) -> int:
    return min(100, max(1, step))


def salary_split_grid(step: int) -> tuple[int, ...]:
    """Salary percentages from 0 to 100 inclusive; ``step`` is clamped to 1..100."""
    grid = list(range(0, 100, _clamp_step(step)))
    grid.append(100)
    return tuple(grid)


class Settings(BaseModel):
    default_tax_year: int = Field(default_factory=lambda: int(os.getenv("TAXPLAN_TAX_YEAR", "2024")))
    default_province: str = Field(default_factory=lambda: os.getenv("TAXPLAN_DEFAULT_PROVINCE", "ON"))
    split_step: int = Field(default_factory=lambda: int(os.getenv("TAXPLAN_SPLIT_STEP", "10")))
    default_corporate_income: Decimal = Field(
        default_factory=lambda: Decimal(os.getenv("TAXPLAN_CORPORATE_INCOME", "100000"))
    )
    rates_dir: str | None = Field(default_factory=lambda: os.getenv("TAXPLAN_RATES_DIR"))
    log_dir: str = Field(default_factory=lambda: os.getenv("TAXPLAN_LOG_DIR", "logs"))
    file_logging: bool = Field(default_factory=lambda: _env_bool("TAXPLAN_FILE_LOGGING", True))
    cache_results: bool = Field(default_factory=lambda: _env_bool("TAXPLAN_CACHE_RESULTS", True))
    build_version: str = Field(default_factory=lambda: os.getenv("BUILD_VERSION", "dev"))
    build_sha: str = Field(default_factory=lambda: os.getenv("BUILD_SHA", "local"))

    model_config = ConfigDict(frozen=True, validate_default=True)

    @field_validator("default_province", mode="before")
    @classmethod
    def _normalize_province(cls, value: str) -> str:
        return (value or "ON").strip().upper()

    @field_validator("split_step")
    @classmethod
    def _validate_step(cls, value: int) -> int:
        return _clamp_step(value)

    @field_validator("default_corporate_income")
    @classmethod
    def _validate_corporate_income(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("TAXPLAN_CORPORATE_INCOME must be zero or positive")
        if value > MAX_AMOUNT:
            raise ValueError(f"TAXPLAN_CORPORATE_INCOME must not exceed {MAX_AMOUNT}")
        return value

    def split_grid(self) -> tuple[int, ...]:
        """Salary percentages from 0 to 100 inclusive in ``split_step`` increments."""
        return salary_split_grid(self.split_step)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
