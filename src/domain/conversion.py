from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from .conversion_context import ConversionContext
from .currency import CurrencyUnit, currency_unit
from .errors import CurrencyConversionError, InvalidArgumentError, RateLookupError
from .exchange_rate import ExchangeRate
from .money import MonetaryAmount


@runtime_checkable
class CurrencyConversion(Protocol):
    """Converts amounts into one fixed term currency under one fixed context."""

    @property
    def currency(self) -> CurrencyUnit: ...

    @property
    def context(self) -> ConversionContext: ...

    def get_currency(self) -> CurrencyUnit: ...

    def get_conversion_context(self) -> ConversionContext: ...

    def get_exchange_rate(self, amount: MonetaryAmount) -> ExchangeRate | None: ...

    def with_context(self, context: ConversionContext) -> CurrencyConversion: ...

    def is_available(self, amount: MonetaryAmount) -> bool: ...

    def apply(self, amount: MonetaryAmount) -> MonetaryAmount: ...

    def __call__(self, amount: MonetaryAmount) -> MonetaryAmount: ...


class BaseCurrencyConversion(ABC):
    """Shared ``apply`` for conversions; subclasses only decide how a rate is resolved.

    ``get_exchange_rate`` returns ``None`` when no rate exists for the amount and
    raises ``RateLookupError`` when the lookup itself failed.
    """

    def __init__(self, term_currency: str, context: ConversionContext) -> None:
        if term_currency is None:
            raise InvalidArgumentError("term_currency must not be None")
        if context is None:
            raise InvalidArgumentError("context must not be None")
        self._term_currency = currency_unit(term_currency)
        self._context = context

    @property
    def currency(self) -> CurrencyUnit:
        return self._term_currency

    @property
    def context(self) -> ConversionContext:
        return self._context

    def get_currency(self) -> CurrencyUnit:
        return self._term_currency

    def get_conversion_context(self) -> ConversionContext:
        return self._context

    @abstractmethod
    def get_exchange_rate(self, amount: MonetaryAmount) -> ExchangeRate | None: ...

    @abstractmethod
    def with_context(self, context: ConversionContext) -> BaseCurrencyConversion: ...

    def is_available(self, amount: MonetaryAmount) -> bool:
        return self.get_exchange_rate(amount) is not None

    def apply(self, amount: MonetaryAmount) -> MonetaryAmount:
        try:
            rate = self.get_exchange_rate(amount)
        except RateLookupError as exc:
            raise CurrencyConversionError(
                source_currency=amount.currency,
                target_currency=self._term_currency,
                cause=exc,
            ) from exc

        if rate is None or amount.currency != rate.base:
            raise CurrencyConversionError(
                source_currency=amount.currency,
                target_currency=rate.term if rate is not None else None,
            )
        return amount.multiply(rate.factor).with_currency(rate.term)

    def __call__(self, amount: MonetaryAmount) -> MonetaryAmount:
        return self.apply(amount)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(currency={self._term_currency}, "
            f"provider={self._context.provider_name}, rate_type={self._context.rate_type})"
        )


__all__ = ["BaseCurrencyConversion", "CurrencyConversion"]
