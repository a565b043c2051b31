from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import MAX_PREC, Decimal, localcontext
from typing import Any

from config import config

from .conversion_context import ConversionContext, RateType
from .currency import CurrencyUnit, currency_unit
from .errors import InvalidArgumentError
from .exchange_rate import ExchangeRate, FactorCompositionPolicy
from .money import to_decimal

logger = logging.getLogger(__name__)


def compose_factors(factors: Iterable[Decimal], *, precision: int) -> Decimal:
    """Multiply factors exactly, then round the product once to ``precision`` digits."""
    with localcontext() as ctx:
        ctx.prec = MAX_PREC
        product = Decimal(1)
        for factor in factors:
            product *= factor
        ctx.prec = precision
        return +product


class ExchangeRateBuilder:
    """Stage the fields of an ``ExchangeRate`` and validate them on ``build()``.

    A builder is meant for a single owner. It does no locking, so sharing one
    across threads while it is being mutated gives undefined results.

    Chains are copied whenever they cross into or out of the builder, so
    neither the caller's list nor an existing rate can be changed through it.
    """

    def __init__(
        self,
        context: ConversionContext | None = None,
        *,
        factor_policy: FactorCompositionPolicy | None = None,
        factor_tolerance: Decimal | None = None,
    ) -> None:
        self.context: ConversionContext | None = None
        self.base: CurrencyUnit | None = None
        self.term: CurrencyUnit | None = None
        self.factor: Decimal | None = None
        self.rate_chain: list[ExchangeRate] = []
        self.factor_policy = factor_policy
        self.factor_tolerance = factor_tolerance
        if context is not None:
            self.set_context(context)

    @classmethod
    def of(cls, provider_name: str, rate_type: RateType = RateType.ANY) -> ExchangeRateBuilder:
        return cls(ConversionContext.of(provider_name, rate_type))

    @classmethod
    def from_rate(cls, rate: ExchangeRate) -> ExchangeRateBuilder:
        return cls().set_rate(rate)

    def set_base(self, base: str | None) -> ExchangeRateBuilder:
        self.base = currency_unit(base) if base is not None else None
        return self

    def set_term(self, term: str | None) -> ExchangeRateBuilder:
        self.term = currency_unit(term) if term is not None else None
        return self

    def set_factor(self, factor: Any) -> ExchangeRateBuilder:
        self.factor = to_decimal(factor) if factor is not None else None
        return self

    def set_context(self, context: ConversionContext | None) -> ExchangeRateBuilder:
        if context is None:
            raise InvalidArgumentError("context must not be None")
        self.context = context
        return self

    def set_rate_chain(self, *rates: Any) -> ExchangeRateBuilder:
        """Replace the chain. Accepts rates as varargs or as a single iterable; ``None`` clears it."""
        if len(rates) == 1 and not isinstance(rates[0], ExchangeRate):
            single = rates[0]
            if single is None:
                rates = ()
            elif isinstance(single, Iterable):
                rates = tuple(single)
        self.rate_chain = list(rates)
        return self

    def set_rate(self, rate: ExchangeRate) -> ExchangeRateBuilder:
        self.set_context(rate.context)
        self.base = rate.base
        self.term = rate.term
        self.factor = rate.factor
        self.rate_chain = list(rate.rate_chain)
        return self

    def build(self) -> ExchangeRate:
        missing = [
            name
            for name, value in (
                ("base", self.base),
                ("term", self.term),
                ("factor", self.factor),
                ("context", self.context),
            )
            if value is None
        ]
        if missing:
            raise InvalidArgumentError(f"cannot build ExchangeRate, missing: {', '.join(missing)}")
        assert self.base is not None and self.term is not None
        assert self.factor is not None and self.context is not None

        if not self.factor.is_finite():
            raise InvalidArgumentError(f"factor must be finite, got {self.factor}")
        if self.factor < 0:
            raise InvalidArgumentError(f"factor must be >= 0, got {self.factor}")

        chain = tuple(self.rate_chain)
        if chain:
            self._validate_chain(chain, base=self.base, term=self.term)
            self._validate_factor_composition(chain, factor=self.factor)

        return ExchangeRate(
            context=self.context,
            base=self.base,
            term=self.term,
            factor=self.factor,
            rate_chain=chain,
        )

    @staticmethod
    def _validate_chain(chain: tuple[ExchangeRate, ...], *, base: CurrencyUnit, term: CurrencyUnit) -> None:
        for index, rate in enumerate(chain):
            if not isinstance(rate, ExchangeRate):
                raise InvalidArgumentError(f"rate_chain[{index}] is not an ExchangeRate: {rate!r}")

        if chain[0].base != base:
            raise InvalidArgumentError(f"rate chain starts at {chain[0].base}, expected base {base}")
        if chain[-1].term != term:
            raise InvalidArgumentError(f"rate chain ends at {chain[-1].term}, expected term {term}")
        for index, (current, following) in enumerate(zip(chain, chain[1:])):
            if current.term != following.base:
                raise InvalidArgumentError(
                    f"rate chain is broken between elements {index} and {index + 1}: "
                    f"{current.base}/{current.term} followed by {following.base}/{following.term}"
                )

    def _validate_factor_composition(self, chain: tuple[ExchangeRate, ...], *, factor: Decimal) -> None:
        settings = config()
        policy = self.factor_policy or settings.factor_policy
        tolerance = self.factor_tolerance if self.factor_tolerance is not None else settings.factor_tolerance

        product = compose_factors((rate.factor for rate in chain), precision=settings.calculation_precision)
        with localcontext() as ctx:
            ctx.prec = settings.calculation_precision
            # both sides rounded once under the same context
            difference = abs(+factor - product)
            if product == 0:
                within_tolerance = difference == 0
            else:
                within_tolerance = difference / abs(product) <= tolerance

        if difference == 0:
            return

        if policy == FactorCompositionPolicy.IGNORE:
            logger.warning("Accepting factor %s that differs from chain product %s", factor, product)
            return
        if policy == FactorCompositionPolicy.TOLERANT and within_tolerance:
            logger.debug("Factor %s within tolerance %s of chain product %s", factor, tolerance, product)
            return

        raise InvalidArgumentError(
            f"factor {factor} does not match the product of the rate chain {product} (policy={policy})"
        )


__all__ = ["ExchangeRateBuilder", "compose_factors"]
