"""
Print normalized prices for every card in a set.

    python -m lumidex.scripts.price_set sv8pt5 --currency NOK --source cardmarket
"""
import asyncio
import sys

from lumidex.core.cache import RateCache
from lumidex.core.config import settings
from lumidex.core.constants import normalize_currency, normalize_price_source
from lumidex.core.logging import setup_logging
from lumidex.db.session import async_session_maker
from lumidex.services.engine import VariantPricingEngine
from lumidex.services.pricing.currency import format_price


async def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Normalize prices for a set")
    parser.add_argument("set_id", help="Set id, e.g. sv8pt5")
    parser.add_argument("--currency", default=settings.default_currency)
    parser.add_argument("--source", default=settings.default_price_source)
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abandon cards still running after this many seconds",
    )
    args = parser.parse_args(argv)

    currency = normalize_currency(args.currency)
    source = normalize_price_source(args.source)
    if currency is None or source is None:
        print(f"Unsupported currency or source: {args.currency} / {args.source}")
        return 2

    engine = VariantPricingEngine(
        async_session_maker,
        RateCache(settings.rate_cache_max_size, settings.rate_cache_ttl_seconds),
        settings,
    )
    batch = await engine.normalize_set(args.set_id, currency, source, timeout=args.timeout)

    for card_id, price in batch.results.items():
        cheapest = price.cheapest
        if cheapest is None:
            print(f"{card_id}: no price")
            continue
        label = format_price(cheapest.price, cheapest.currency, cheapest.is_approximate)
        print(f"{card_id}: {label} ({cheapest.source.value} {cheapest.variant.value} {cheapest.price_type.value})")

    for card_id, error in batch.errors.items():
        print(f"{card_id}: error: {error}")
    for card_id in batch.timed_out:
        print(f"{card_id}: timed out")

    return 0 if batch.is_complete else 1


if __name__ == "__main__":
    setup_logging(component="price_set")
    sys.exit(asyncio.run(main()))
