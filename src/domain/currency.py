from __future__ import annotations

from typing import NewType

from .errors import InvalidArgumentError

CurrencyUnit = NewType("CurrencyUnit", str)


def currency_unit(code: object) -> CurrencyUnit:
    """Normalise a currency code (e.g. ``" usd"`` -> ``"USD"``)."""
    if not isinstance(code, str):
        raise InvalidArgumentError(f"currency code must be a string, got {type(code).__name__}")
    normalized = code.strip().upper()
    if not normalized:
        raise InvalidArgumentError("currency code must be non-empty")
    return CurrencyUnit(normalized)


__all__ = ["CurrencyUnit", "currency_unit"]
