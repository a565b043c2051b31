# flake8: noqa E402
# Example:
# python scripts/conversion_probe.py --amount 100 --base USD --term EUR \
#     --rate USD/CHF=0.9 --rate CHF/EUR=1.05 --via CHF
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure the src directory is importable when the script is invoked directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from domain.conversion import CurrencyConversion
from domain.conversion_context import ConversionContext, RateType
from domain.errors import CurrencyConversionError
from domain.money import MonetaryAmount
from services.conversions import ProviderCurrencyConversion, TriangulatingCurrencyConversion
from services.rate_provider import InMemoryRateProvider


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert an amount using rates given on the command line.")
    parser.add_argument("--amount", required=True, help="Amount to convert, e.g. 100.25.")
    parser.add_argument("--base", required=True, help="Currency of the amount.")
    parser.add_argument("--term", required=True, help="Currency to convert into.")
    parser.add_argument(
        "--rate",
        action="append",
        dest="rates",
        default=[],
        help="Rate as BASE/TERM=FACTOR. Can be repeated.",
    )
    parser.add_argument(
        "--via",
        action="append",
        default=[],
        help="Intermediate currency for triangulation. Can be repeated.",
    )
    parser.add_argument("--rate-type", default=RateType.ANY.value, choices=[item.value for item in RateType])
    parser.add_argument("--derive-inverse", action="store_true", help="Allow TERM/BASE rates to be inverted.")
    parser.add_argument("--verbose", action="store_true", help="Log rate lookups.")
    return parser.parse_args()


def parse_rate(raw: str) -> tuple[str, str, str]:
    pair, _, factor = raw.partition("=")
    base, _, term = pair.partition("/")
    if not base or not term or not factor:
        raise argparse.ArgumentTypeError(f"expected BASE/TERM=FACTOR, got {raw!r}")
    return base, term, factor


def main() -> None:
    args = parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    provider = InMemoryRateProvider(provider_name="cli", derive_inverse=args.derive_inverse)
    for raw in args.rates:
        provider.add(*parse_rate(raw))

    context = ConversionContext.of("cli", RateType(args.rate_type))
    conversion: CurrencyConversion
    if args.via:
        conversion = TriangulatingCurrencyConversion(args.term, context, provider=provider, via=args.via)
    else:
        conversion = ProviderCurrencyConversion(args.term, context, provider=provider)

    amount = MonetaryAmount.of(args.amount, args.base)
    try:
        result = conversion.apply(amount)
    except CurrencyConversionError as exc:
        print(f"Conversion failed: {exc}")
        raise SystemExit(1) from exc

    print(f"rate:   {conversion.get_exchange_rate(amount)}")
    print(f"result: {amount} => {result}")


if __name__ == "__main__":
    main()
