from __future__ import annotations

import argparse
import json
import sys

from immo_watch.config import Settings
from immo_watch.errors import ImmoWatchError
from immo_watch.models import ScrapeResponse
from immo_watch.utils.log import configure_logging
from immo_watch.repositories.postgres import PostgresSnapshotStore
from immo_watch.services import RequestsPageFetcher, ScrapeService, SeleniumPageRenderer


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run one scrape cycle and print new listings")
    parser.add_argument("--min-price", default=None, help='Minimum price, e.g. "150.000"')
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    store = PostgresSnapshotStore(settings.db_url)
    service = ScrapeService(
        settings,
        store=store,
        renderer=SeleniumPageRenderer(settings),
        fetcher=RequestsPageFetcher(timeout=settings.fetch_timeout_secs),
    )
    try:
        store.init_schema()
        new_items = service.scrape(args.min_price)
    except ImmoWatchError as e:
        print(f"{e.message} {e.detail}", file=sys.stderr)
        return 1
    out = ScrapeResponse.from_candidates(new_items).model_dump(by_alias=True)
    print(json.dumps(out, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
