from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .currency import CurrencyUnit


class InvalidArgumentError(ValueError):
    """Raised synchronously when a rate, builder or conversion is given unusable input."""


class RateLookupError(Exception):
    """The rate lookup itself failed (as opposed to finding no rate)."""

    def __init__(self, message: str, *, provider_name: str | None = None) -> None:
        super().__init__(message)
        self.provider_name = provider_name


class CurrencyConversionError(Exception):
    def __init__(
        self,
        *,
        source_currency: CurrencyUnit,
        target_currency: CurrencyUnit | None,
        cause: BaseException | None = None,
        message: str | None = None,
    ) -> None:
        self.source_currency = source_currency
        self.target_currency = target_currency
        self.cause = cause
        if message is None:
            target = target_currency if target_currency is not None else "<unknown>"
            message = f"Cannot convert {source_currency} to {target}"
            if cause is not None:
                message = f"{message}: {cause}"
        super().__init__(message)


__all__ = ["CurrencyConversionError", "InvalidArgumentError", "RateLookupError"]
