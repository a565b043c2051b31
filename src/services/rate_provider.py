from __future__ import annotations

import logging
from decimal import Decimal, localcontext
from typing import Any, Iterable, Protocol

from config import config
from domain.conversion_context import ConversionContext, RateType
from domain.currency import CurrencyUnit, currency_unit
from domain.exchange_rate import ExchangeRate
from domain.exchange_rate_builder import ExchangeRateBuilder

logger = logging.getLogger(__name__)


class ExchangeRateProvider(Protocol):
    """Lookup interface for base→term rates.

    Returns ``None`` when the provider has no rate for the pair. Failures of the
    lookup itself are reported by raising ``RateLookupError``.
    """

    provider_name: str

    def get_exchange_rate(self, base: str, term: str, context: ConversionContext) -> ExchangeRate | None: ...


class InMemoryRateProvider(ExchangeRateProvider):
    def __init__(
        self,
        *,
        provider_name: str,
        rate_type: RateType = RateType.ANY,
        rates: Iterable[ExchangeRate] | None = None,
        derive_inverse: bool = False,
    ) -> None:
        if not provider_name:
            msg = "provider_name must be provided"
            raise ValueError(msg)

        self.provider_name = provider_name
        self.rate_type = rate_type
        self.derive_inverse = derive_inverse
        self._context = ConversionContext.of(provider_name, rate_type)
        self._rates: dict[tuple[CurrencyUnit, CurrencyUnit], ExchangeRate] = {}
        for rate in rates or ():
            self.add_rate(rate)

    @property
    def context(self) -> ConversionContext:
        return self._context

    def add_rate(self, rate: ExchangeRate) -> None:
        self._rates[(rate.base, rate.term)] = rate

    def add(self, base: str, term: str, factor: Any) -> ExchangeRate:
        rate = ExchangeRateBuilder(self._context).set_base(base).set_term(term).set_factor(factor).build()
        self.add_rate(rate)
        return rate

    def get_exchange_rate(self, base: str, term: str, context: ConversionContext) -> ExchangeRate | None:
        base_unit = currency_unit(base)
        term_unit = currency_unit(term)
        if not self.rate_type.matches(context.rate_type):
            logger.debug(
                "%s: rate type %s not served (provider serves %s)", self.provider_name, context.rate_type, self.rate_type
            )
            return None

        if base_unit == term_unit:
            return self._build(base_unit, term_unit, Decimal(1))

        rate = self._rates.get((base_unit, term_unit))
        if rate is not None:
            logger.debug("%s: found %s", self.provider_name, rate)
            return rate

        if self.derive_inverse:
            inverse = self._rates.get((term_unit, base_unit))
            if inverse is not None and inverse.factor != 0:
                with localcontext() as ctx:
                    ctx.prec = config().calculation_precision
                    factor = Decimal(1) / inverse.factor
                logger.debug("%s: derived %s/%s from inverse rate", self.provider_name, base_unit, term_unit)
                return self._build(base_unit, term_unit, factor)

        logger.debug("%s: no rate for %s/%s", self.provider_name, base_unit, term_unit)
        return None

    def _build(self, base: CurrencyUnit, term: CurrencyUnit, factor: Decimal) -> ExchangeRate:
        return ExchangeRateBuilder(self._context).set_base(base).set_term(term).set_factor(factor).build()


__all__ = ["ExchangeRateProvider", "InMemoryRateProvider"]
