"""CLI wrapper for a one-off rate refresh."""

from __future__ import annotations

import argparse
import asyncio

from currency_service.config import get_settings
from currency_service.core.logging import setup_logging
from currency_service.db.init import init_database
from currency_service.db.session import Database
from currency_service.domain import CurrencyCode
from currency_service.ingest import RatesIngestor
from currency_service.providers import CurrencyFreaksClient
from currency_service.storage import SQLRateStorage


async def _run(base: CurrencyCode, symbols: list[CurrencyCode]) -> None:
    settings = get_settings()
    database = Database(settings.database_url)
    client = CurrencyFreaksClient(
        settings.currency_api_key,
        base_url=settings.currency_api_base_url,
        timeout=settings.provider_timeout_seconds,
    )
    try:
        await init_database(database)
        ingestor = RatesIngestor(
            client, SQLRateStorage(database.session_factory), timeout=settings.fetch_timeout_seconds
        )
        response = await ingestor.fetch_and_save(base, symbols)
        print(f"Stored {len(response.rates)} rates for {response.base} as of {response.date}")
    finally:
        await client.aclose()
        await database.dispose()


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Fetch latest CurrencyFreaks rates and store them")
    parser.add_argument("--base", default=settings.pivot_currency.value)
    parser.add_argument(
        "--symbols",
        default=",".join(code.value for code in settings.symbols),
        help="Comma-separated quote currencies",
    )
    args = parser.parse_args()
    setup_logging(settings.log_level)

    base = CurrencyCode.parse(args.base)
    symbols = [CurrencyCode.parse(raw) for raw in args.symbols.split(",") if raw.strip()]
    asyncio.run(_run(base, symbols))


if __name__ == "__main__":
    main()
