from __future__ import annotations

import decimal
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from config import config

from .currency import CurrencyUnit, currency_unit
from .errors import InvalidArgumentError

ROUNDING_MODES = frozenset(
    {
        decimal.ROUND_CEILING,
        decimal.ROUND_DOWN,
        decimal.ROUND_FLOOR,
        decimal.ROUND_HALF_DOWN,
        decimal.ROUND_HALF_EVEN,
        decimal.ROUND_HALF_UP,
        decimal.ROUND_UP,
        decimal.ROUND_05UP,
    }
)


def to_decimal(value: Any) -> Decimal:
    """Convert a numeric input to ``Decimal``.

    Floats go through ``str`` so that ``0.92`` becomes ``Decimal("0.92")`` rather
    than its binary expansion.
    """
    if isinstance(value, bool):
        raise InvalidArgumentError("bool is not a valid numeric value")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise InvalidArgumentError(f"not a valid decimal number: {value!r}") from exc
    raise InvalidArgumentError(f"unsupported numeric type: {type(value).__name__}")


def _default_precision() -> int:
    return config().calculation_precision


def _default_rounding() -> str:
    return config().default_rounding


class MonetaryContext(BaseModel):
    """Precision and rounding applied to arithmetic on an amount."""

    model_config = ConfigDict(frozen=True)

    precision: int = Field(default_factory=_default_precision)
    rounding: str = Field(default_factory=_default_rounding)

    @model_validator(mode="after")
    def _validate_fields(self) -> MonetaryContext:
        if self.precision <= 0:
            raise ValueError("precision must be > 0")
        if self.rounding not in ROUNDING_MODES:
            raise ValueError(f"unknown rounding mode: {self.rounding}")
        return self


class MonetaryAmount(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: Decimal
    currency: CurrencyUnit
    context: MonetaryContext = Field(default_factory=MonetaryContext)

    @field_validator("currency", mode="before")
    @classmethod
    def _normalize_currency(cls, value: Any) -> CurrencyUnit:
        return currency_unit(value)

    @classmethod
    def of(cls, number: Any, currency: str, *, context: MonetaryContext | None = None) -> MonetaryAmount:
        if context is None:
            return cls(number=to_decimal(number), currency=currency_unit(currency))
        return cls(number=to_decimal(number), currency=currency_unit(currency), context=context)

    def multiply(self, factor: Any) -> MonetaryAmount:
        multiplier = to_decimal(factor)
        with localcontext() as ctx:
            ctx.prec = self.context.precision
            ctx.rounding = self.context.rounding
            product = self.number * multiplier
        return self.with_number(product)

    def with_number(self, number: Any) -> MonetaryAmount:
        return self.model_copy(update={"number": to_decimal(number)})

    def with_currency(self, currency: str) -> MonetaryAmount:
        return self.model_copy(update={"currency": currency_unit(currency)})

    def __str__(self) -> str:
        return f"{self.currency} {self.number}"


__all__ = ["MonetaryAmount", "MonetaryContext", "ROUNDING_MODES", "to_decimal"]
