from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from functools import cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class FactorCompositionPolicy(StrEnum):
    """How strictly a derived rate's factor must match the product of its chain."""

    STRICT = "STRICT"
    TOLERANT = "TOLERANT"
    IGNORE = "IGNORE"


class ConversionSettings(BaseSettings):
    factor_policy: FactorCompositionPolicy = FactorCompositionPolicy.TOLERANT
    factor_tolerance: Decimal = Decimal("0.000001")
    calculation_precision: int = 34
    default_rounding: str = "ROUND_HALF_EVEN"

    model_config = SettingsConfigDict(
        env_prefix="FX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@cache
def config() -> ConversionSettings:
    return ConversionSettings()
