"""
Fetch today's exchange rates and store them.

Meant to run once a day from cron:
    python -m lumidex.scripts.sync_exchange_rates
"""
import asyncio
import sys

import structlog

from lumidex.core.config import settings
from lumidex.core.logging import setup_logging
from lumidex.db.session import async_session_maker, init_db
from lumidex.services.pricing.rate_sync import update_all_rates

logger = structlog.get_logger()


async def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Sync exchange rates from the rate API")
    parser.add_argument(
        "--base",
        action="append",
        dest="bases",
        help="Base currency to fetch (repeatable, default: EXCHANGE_RATE_BASE_CURRENCIES)",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=1.0,
        help="Seconds to wait between API requests (default: 1.0)",
    )
    args = parser.parse_args(argv)

    run_settings = settings
    if args.bases:
        run_settings = settings.model_copy(update={"exchange_rate_base_currencies": args.bases})

    await init_db()
    result = await update_all_rates(
        async_session_maker,
        settings=run_settings,
        delay_seconds=args.delay,
    )

    print(f"Stored rates: {result['updated_rates']}")
    for error in result["errors"]:
        print(f"  {error}")

    return 0 if result["success"] else 1


def run() -> None:
    setup_logging(component="sync_exchange_rates")
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
