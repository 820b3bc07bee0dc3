from __future__ import annotations

import argparse
import json
import logging
import os

from app.core.config import DATABASE_URL, INGEST_DEFAULT_COUNT, INGEST_DELAY_SECONDS, RAWG_API_KEY
from app.services.rawg_catalog import RawgClient, ingest_games
from app.services.store import Store


def main() -> int:
    parser = argparse.ArgumentParser(description="Load games from RAWG into the catalog (upsert on rawg_id).")
    parser.add_argument("--count", type=int, default=INGEST_DEFAULT_COUNT, help="Number of games to fetch")
    parser.add_argument("--dry", action="store_true", help="Fetch and transform without writing")
    parser.add_argument(
        "--no-details",
        dest="fetch_details",
        action="store_false",
        help="Skip per-game detail requests (placeholder descriptions)",
    )
    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", DATABASE_URL),
        help="Target database URL",
    )
    parser.add_argument("--delay", type=float, default=INGEST_DELAY_SECONDS, help="Seconds between RAWG calls")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if not RAWG_API_KEY:
        raise SystemExit("RAWG_API_KEY is not set")
    if args.count <= 0:
        raise SystemExit("--count must be positive")

    store = None
    if not args.dry:
        store = Store.from_url(args.database_url)
        store.create_schema()
    try:
        result = ingest_games(
            store,
            RawgClient(),
            count=args.count,
            dry_run=args.dry,
            fetch_details=args.fetch_details,
            delay=args.delay,
        )
    finally:
        if store is not None:
            store.dispose()

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
