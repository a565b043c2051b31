from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from domain.conversion_context import ConversionContext, RateType
from domain.errors import InvalidArgumentError
from domain.exchange_rate import ExchangeRate, FactorCompositionPolicy
from domain.exchange_rate_builder import ExchangeRateBuilder, compose_factors
from tests.helpers.rates import TEST_CONTEXT, make_rate


def _chain() -> list[ExchangeRate]:
    return [make_rate("USD", "CHF", "0.9"), make_rate("CHF", "EUR", "1.05")]


def _complete_builder() -> ExchangeRateBuilder:
    return ExchangeRateBuilder(TEST_CONTEXT).set_base("USD").set_term("EUR").set_factor("0.92")


def test_build_creates_rate_from_all_fields() -> None:
    rate = _complete_builder().build()

    assert rate.base == "USD"
    assert rate.term == "EUR"
    assert rate.factor == Decimal("0.92")
    assert rate.context == TEST_CONTEXT
    assert rate.rate_chain == ()


@pytest.mark.parametrize("field", ["base", "term", "factor"])
def test_build_fails_when_required_field_is_unset(field: str) -> None:
    builder = _complete_builder()
    setattr(builder, field, None)

    with pytest.raises(InvalidArgumentError, match=field):
        builder.build()


def test_build_fails_without_context() -> None:
    builder = ExchangeRateBuilder().set_base("USD").set_term("EUR").set_factor("0.92")

    with pytest.raises(InvalidArgumentError, match="context"):
        builder.build()


def test_build_lists_every_missing_field() -> None:
    with pytest.raises(InvalidArgumentError) as exc_info:
        ExchangeRateBuilder().build()

    message = str(exc_info.value)
    for name in ("base", "term", "factor", "context"):
        assert name in message


def test_set_context_rejects_none_immediately() -> None:
    builder = ExchangeRateBuilder()

    with pytest.raises(InvalidArgumentError):
        builder.set_context(None)


def test_of_creates_context_from_provider_and_rate_type() -> None:
    rate = ExchangeRateBuilder.of("ecb", RateType.HISTORIC).set_base("EUR").set_term("PLN").set_factor("4.3").build()

    assert rate.context == ConversionContext(provider_name="ecb", rate_type=RateType.HISTORIC)


def test_setters_normalize_currency_codes_and_factor() -> None:
    rate = ExchangeRateBuilder(TEST_CONTEXT).set_base(" usd").set_term("eur").set_factor(0.92).build()

    assert rate.base == "USD"
    assert rate.term == "EUR"
    assert rate.factor == Decimal("0.92")


def test_set_factor_rejects_non_numeric_input() -> None:
    with pytest.raises(InvalidArgumentError):
        ExchangeRateBuilder(TEST_CONTEXT).set_factor("abc")
    with pytest.raises(InvalidArgumentError):
        ExchangeRateBuilder(TEST_CONTEXT).set_factor(True)


def test_negative_factor_is_rejected() -> None:
    with pytest.raises(InvalidArgumentError, match=">= 0"):
        _complete_builder().set_factor("-1").build()


def test_zero_factor_is_accepted() -> None:
    rate = _complete_builder().set_factor("0").build()

    assert rate.factor == 0


def test_non_finite_factor_is_rejected() -> None:
    with pytest.raises(InvalidArgumentError, match="finite"):
        _complete_builder().set_factor("Infinity").build()


def test_identity_rate_is_valid() -> None:
    rate = ExchangeRateBuilder(TEST_CONTEXT).set_base("EUR").set_term("EUR").set_factor(1).build()

    assert rate.is_identity


def test_chain_with_matching_factor_is_accepted() -> None:
    chain = _chain()
    rate = _complete_builder().set_factor("0.945").set_rate_chain(chain).build()

    assert rate.rate_chain == tuple(chain)
    assert rate.is_derived


def test_chain_accepts_varargs_and_list_equally() -> None:
    first, second = _chain()

    from_varargs = _complete_builder().set_factor("0.945").set_rate_chain(first, second).build()
    from_list = _complete_builder().set_factor("0.945").set_rate_chain([first, second]).build()

    assert from_varargs == from_list


def test_set_rate_chain_none_clears_chain() -> None:
    builder = _complete_builder().set_factor("0.945").set_rate_chain(_chain())

    builder.set_rate_chain(None)

    assert builder.rate_chain == []
    assert not builder.build().is_derived


def test_chain_must_start_at_base() -> None:
    chain = [make_rate("GBP", "CHF", "0.9"), make_rate("CHF", "EUR", "1.05")]

    with pytest.raises(InvalidArgumentError, match="starts at GBP"):
        _complete_builder().set_factor("0.945").set_rate_chain(chain).build()


def test_chain_must_end_at_term() -> None:
    chain = [make_rate("USD", "CHF", "0.9"), make_rate("CHF", "PLN", "1.05")]

    with pytest.raises(InvalidArgumentError, match="ends at PLN"):
        _complete_builder().set_factor("0.945").set_rate_chain(chain).build()


def test_chain_must_be_continuous() -> None:
    chain = [
        make_rate("USD", "CHF", "0.9"),
        make_rate("GBP", "JPY", "190"),
        make_rate("JPY", "EUR", "0.0061"),
    ]

    with pytest.raises(InvalidArgumentError, match="broken between elements 0 and 1"):
        _complete_builder().set_factor("1.0431").set_rate_chain(chain).build()


def test_chain_elements_must_be_rates() -> None:
    with pytest.raises(InvalidArgumentError, match="not an ExchangeRate"):
        _complete_builder().set_rate_chain([make_rate("USD", "EUR", "0.92"), "EUR"]).build()


def test_mismatched_chain_factor_is_rejected() -> None:
    with pytest.raises(InvalidArgumentError, match="does not match"):
        _complete_builder().set_factor("0.95").set_rate_chain(_chain()).build()


def test_tolerant_policy_accepts_rounded_factor() -> None:
    builder = ExchangeRateBuilder(TEST_CONTEXT, factor_policy=FactorCompositionPolicy.TOLERANT)
    rate = builder.set_base("USD").set_term("EUR").set_factor("0.9450001").set_rate_chain(_chain()).build()

    assert rate.factor == Decimal("0.9450001")


def test_strict_policy_rejects_rounded_factor() -> None:
    builder = ExchangeRateBuilder(TEST_CONTEXT, factor_policy=FactorCompositionPolicy.STRICT)
    builder.set_base("USD").set_term("EUR").set_factor("0.9450001").set_rate_chain(_chain())

    with pytest.raises(InvalidArgumentError, match="policy=STRICT"):
        builder.build()


def test_custom_tolerance_widens_accepted_range() -> None:
    builder = ExchangeRateBuilder(TEST_CONTEXT, factor_tolerance=Decimal("0.01"))
    rate = builder.set_base("USD").set_term("EUR").set_factor("0.95").set_rate_chain(_chain()).build()

    assert rate.factor == Decimal("0.95")


def test_ignore_policy_accepts_mismatch_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    builder = ExchangeRateBuilder(TEST_CONTEXT, factor_policy=FactorCompositionPolicy.IGNORE)
    builder.set_base("USD").set_term("EUR").set_factor("2").set_rate_chain(_chain())

    with caplog.at_level(logging.WARNING, logger="domain.exchange_rate_builder"):
        rate = builder.build()

    assert rate.factor == Decimal("2")
    assert "differs from chain product" in caplog.text


def test_zero_factor_chain_requires_zero_factor() -> None:
    chain = [make_rate("USD", "CHF", "0"), make_rate("CHF", "EUR", "1.05")]

    assert _complete_builder().set_factor("0").set_rate_chain(chain).build().factor == 0
    with pytest.raises(InvalidArgumentError):
        _complete_builder().set_factor("0.0001").set_rate_chain(chain).build()


def test_mutating_supplied_chain_does_not_affect_builder_or_rate() -> None:
    chain = _chain()
    builder = _complete_builder().set_factor("0.945").set_rate_chain(chain)

    chain.append(make_rate("EUR", "PLN", "4.3"))
    rate = builder.build()
    chain.clear()

    assert len(builder.rate_chain) == 2
    assert len(rate.rate_chain) == 2


def test_mutating_builder_chain_does_not_affect_built_rate() -> None:
    builder = _complete_builder().set_factor("0.945").set_rate_chain(_chain())
    rate = builder.build()

    builder.rate_chain.clear()

    assert len(rate.rate_chain) == 2


def test_set_rate_copies_chain_instead_of_aliasing() -> None:
    original = _complete_builder().set_factor("0.945").set_rate_chain(_chain()).build()
    builder = ExchangeRateBuilder().set_rate(original)

    builder.rate_chain.clear()

    assert len(original.rate_chain) == 2
    assert builder.set_rate_chain(original.rate_chain).build() == original


def test_from_rate_round_trips() -> None:
    original = _complete_builder().set_factor("0.945").set_rate_chain(_chain()).build()

    assert ExchangeRateBuilder.from_rate(original).build() == original
    assert original.to_builder().build() == original


def test_from_rate_allows_clone_and_modify() -> None:
    original = make_rate("USD", "EUR", "0.92")

    derived = ExchangeRateBuilder.from_rate(original).set_factor("0.93").build()

    assert derived.factor == Decimal("0.93")
    assert derived.base == original.base
    assert original.factor == Decimal("0.92")


def test_build_twice_returns_equal_independent_rates() -> None:
    builder = _complete_builder().set_factor("0.945").set_rate_chain(_chain())

    first = builder.build()
    second = builder.build()

    assert first == second
    assert first is not second


def test_builder_stays_usable_after_build() -> None:
    builder = _complete_builder()
    first = builder.build()

    second = builder.set_term("GBP").set_factor("0.79").build()

    assert first.term == "EUR"
    assert second.term == "GBP"


def test_strict_policy_accepts_exact_product_longer_than_precision() -> None:
    chain = [
        make_rate("USD", "CHF", "1.234567890123456789"),
        make_rate("CHF", "EUR", "9.876543210987654321"),
    ]
    builder = ExchangeRateBuilder(TEST_CONTEXT, factor_policy=FactorCompositionPolicy.STRICT)
    builder.set_base("USD").set_term("EUR").set_factor("12.193263113702179522374638011112635269")

    rate = builder.set_rate_chain(chain).build()

    assert rate.factor == Decimal("12.193263113702179522374638011112635269")


def test_strict_policy_accepts_product_rounded_to_precision() -> None:
    chain = [
        make_rate("USD", "CHF", "1.234567890123456789"),
        make_rate("CHF", "EUR", "9.876543210987654321"),
    ]
    builder = ExchangeRateBuilder(TEST_CONTEXT, factor_policy=FactorCompositionPolicy.STRICT)
    builder.set_base("USD").set_term("EUR").set_factor("12.19326311370217952237463801111264")

    assert builder.set_rate_chain(chain).build().is_derived


def test_compose_factors_rounds_exact_product_once() -> None:
    factors = [Decimal("1.234567890123456789"), Decimal("9.876543210987654321")]

    assert compose_factors(factors, precision=60) == Decimal("12.193263113702179522374638011112635269")
    assert compose_factors(factors, precision=34) == Decimal("12.19326311370217952237463801111264")
    assert compose_factors([], precision=34) == Decimal(1)
