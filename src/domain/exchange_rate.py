from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from config import FactorCompositionPolicy

from .conversion_context import ConversionContext
from .currency import CurrencyUnit

if TYPE_CHECKING:
    from .exchange_rate_builder import ExchangeRateBuilder


@dataclass(frozen=True)
class ExchangeRate:
    """``base * factor = term`` under a given conversion context.

    A non-empty ``rate_chain`` means the rate was derived along the path
    ``base -> ... -> term``. Instances are produced by ``ExchangeRateBuilder``,
    which enforces chain continuity and factor composition.
    """

    context: ConversionContext
    base: CurrencyUnit
    term: CurrencyUnit
    factor: Decimal
    rate_chain: tuple[ExchangeRate, ...] = field(default=())

    @property
    def currency(self) -> CurrencyUnit:
        return self.term

    @property
    def is_derived(self) -> bool:
        return len(self.rate_chain) > 0

    @property
    def is_identity(self) -> bool:
        return self.base == self.term and self.factor == 1

    def to_builder(self) -> ExchangeRateBuilder:
        from .exchange_rate_builder import ExchangeRateBuilder

        return ExchangeRateBuilder.from_rate(self)

    def __str__(self) -> str:
        text = f"{self.base}/{self.term} {self.factor} [{self.context.provider_name}, {self.context.rate_type}]"
        if self.rate_chain:
            path = " -> ".join([self.rate_chain[0].base, *(rate.term for rate in self.rate_chain)])
            text = f"{text} via {path}"
        return text


__all__ = ["ExchangeRate", "FactorCompositionPolicy"]
