from __future__ import annotations

import logging
from typing import Iterable

from config import config
from domain.conversion import BaseCurrencyConversion
from domain.conversion_context import ConversionContext
from domain.currency import currency_unit
from domain.errors import InvalidArgumentError
from domain.exchange_rate import ExchangeRate
from domain.exchange_rate_builder import ExchangeRateBuilder, compose_factors
from domain.money import MonetaryAmount

from .rate_provider import ExchangeRateProvider

logger = logging.getLogger(__name__)


class ProviderCurrencyConversion(BaseCurrencyConversion):
    """Looks the rate up directly from the provider it was given."""

    def __init__(self, term_currency: str, context: ConversionContext, *, provider: ExchangeRateProvider) -> None:
        super().__init__(term_currency, context)
        self.provider = provider

    def get_exchange_rate(self, amount: MonetaryAmount) -> ExchangeRate | None:
        return self.provider.get_exchange_rate(amount.currency, self.currency, self.context)

    def with_context(self, context: ConversionContext) -> ProviderCurrencyConversion:
        return ProviderCurrencyConversion(self.currency, context, provider=self.provider)


class TriangulatingCurrencyConversion(ProviderCurrencyConversion):
    """Falls back to ``base -> intermediate -> term`` when there is no direct rate.

    Intermediates are tried in the order given; the first complete path wins.
    """

    def __init__(
        self,
        term_currency: str,
        context: ConversionContext,
        *,
        provider: ExchangeRateProvider,
        via: Iterable[str],
    ) -> None:
        super().__init__(term_currency, context, provider=provider)
        self.via = tuple(currency_unit(code) for code in via)
        if not self.via:
            raise InvalidArgumentError("via must contain at least one intermediate currency")

    def get_exchange_rate(self, amount: MonetaryAmount) -> ExchangeRate | None:
        direct = super().get_exchange_rate(amount)
        if direct is not None:
            return direct

        base = amount.currency
        for intermediate in self.via:
            if intermediate in (base, self.currency):
                continue
            first = self.provider.get_exchange_rate(base, intermediate, self.context)
            if first is None:
                continue
            second = self.provider.get_exchange_rate(intermediate, self.currency, self.context)
            if second is None:
                continue
            logger.debug("Triangulated %s -> %s via %s", base, self.currency, intermediate)
            return self._derive(first, second)

        logger.debug("No path from %s to %s via %s", base, self.currency, ", ".join(self.via))
        return None

    def with_context(self, context: ConversionContext) -> TriangulatingCurrencyConversion:
        return TriangulatingCurrencyConversion(self.currency, context, provider=self.provider, via=self.via)

    def _derive(self, *legs: ExchangeRate) -> ExchangeRate:
        factor = compose_factors((leg.factor for leg in legs), precision=config().calculation_precision)
        return (
            ExchangeRateBuilder(self.context)
            .set_base(legs[0].base)
            .set_term(legs[-1].term)
            .set_factor(factor)
            .set_rate_chain(legs)
            .build()
        )


class FixedRateCurrencyConversion(BaseCurrencyConversion):
    """Always answers with the same rate; for pinned rates and tests."""

    def __init__(self, rate: ExchangeRate, context: ConversionContext | None = None) -> None:
        super().__init__(rate.term, context if context is not None else rate.context)
        self.rate = rate

    def get_exchange_rate(self, amount: MonetaryAmount) -> ExchangeRate | None:
        if amount.currency != self.rate.base:
            return None
        return self.rate

    def with_context(self, context: ConversionContext) -> FixedRateCurrencyConversion:
        return FixedRateCurrencyConversion(self.rate, context)


__all__ = [
    "FixedRateCurrencyConversion",
    "ProviderCurrencyConversion",
    "TriangulatingCurrencyConversion",
]
