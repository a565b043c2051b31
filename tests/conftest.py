import os
from typing import Generator

import pytest

from config import config
from domain.conversion_context import ConversionContext, RateType
from domain.exchange_rate import ExchangeRate
from services.rate_provider import InMemoryRateProvider
from tests.helpers.rates import make_rate


@pytest.fixture(autouse=True)
def _reset_config(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    for key in list(os.environ):
        if key.startswith("FX_"):
            monkeypatch.delenv(key)
    config.cache_clear()
    yield
    config.cache_clear()


@pytest.fixture(scope="function")
def conversion_context() -> ConversionContext:
    return ConversionContext.of("test-provider", RateType.CURRENT)


@pytest.fixture(scope="function")
def usd_eur_rate() -> ExchangeRate:
    return make_rate("USD", "EUR", "0.92")


@pytest.fixture(scope="function")
def rate_provider() -> InMemoryRateProvider:
    provider = InMemoryRateProvider(provider_name="test-provider", rate_type=RateType.CURRENT)
    provider.add("USD", "EUR", "0.92")
    provider.add("USD", "CHF", "0.9")
    provider.add("CHF", "EUR", "1.05")
    provider.add("GBP", "USD", "1.25")
    return provider
