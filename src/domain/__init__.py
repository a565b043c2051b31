"""Domain models and types for exchange rates and currency conversion.

This package contains the immutable value types (currencies, amounts,
conversion contexts, exchange rates), the builder that validates rates and
rate chains, and the conversion contract. Concrete rate providers and
conversion variants live in ``services``.
"""

__all__ = [
    "conversion",
    "conversion_context",
    "currency",
    "errors",
    "exchange_rate",
    "exchange_rate_builder",
    "money",
]
