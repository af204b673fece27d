"""Issue a new API key and store its hash."""

from __future__ import annotations

import argparse
import asyncio

from currency_service.config import get_settings
from currency_service.db.init import init_database
from currency_service.db.session import Database
from currency_service.services import generate_api_key, hash_api_key
from currency_service.storage import APIKeyStorage


async def _run(label: str | None, inactive: bool) -> None:
    settings = get_settings()
    if not settings.encoding_key:
        raise SystemExit("ENCODING_KEY must be set to issue API keys")

    database = Database(settings.database_url)
    try:
        await init_database(database)
        raw_key = generate_api_key()
        record = await APIKeyStorage(database.session_factory).insert(
            hash_api_key(raw_key, settings.encoding_key), label=label, is_active=not inactive
        )
    finally:
        await database.dispose()
    # The raw key is shown once; only its hash is stored.
    print(f"API key #{record.id}: {raw_key}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create an API key for the rates API")
    parser.add_argument("--label", default=None)
    parser.add_argument("--inactive", action="store_true", help="Store the key as expired")
    args = parser.parse_args()
    asyncio.run(_run(args.label, args.inactive))


if __name__ == "__main__":
    main()
