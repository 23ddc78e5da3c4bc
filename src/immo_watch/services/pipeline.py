"""Scrape cycle and detail lookup, wired to their collaborators."""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Protocol

from immo_watch.config import Settings
from immo_watch.errors import ValidationError
from immo_watch.models import CandidateListing, ListingDetail, PersistedListing
from .details import DetailExtractor, PageFetcher, detail_headers, is_detail_url
from .pricing import filter_by_min_price, parse_min_price
from .reconcile import Reconciliation, reconcile
from .scraper import ListingExtractor, PageRenderer


logger = logging.getLogger(__name__)


class SnapshotStore(Protocol):
    def list_all(self) -> List[PersistedListing]:
        ...

    def clear(self) -> None:
        ...

    def upsert(self, url: str, price: str) -> None:
        ...


class ScrapeService:
    """Runs scrape cycles against the agency page and fetches listing details.

    Scrape cycles are not serialised against each other; overlapping calls
    can interleave their reads and replace-writes.
    """

    def __init__(
        self,
        settings: Settings,
        store: SnapshotStore,
        renderer: PageRenderer,
        fetcher: PageFetcher,
        extractor: Optional[ListingExtractor] = None,
        detail_extractor: Optional[DetailExtractor] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.renderer = renderer
        self.fetcher = fetcher
        self.extractor = extractor or ListingExtractor(settings)
        self.detail_extractor = detail_extractor or DetailExtractor(settings)

    def listings(self) -> List[PersistedListing]:
        return self.store.list_all()

    def clear(self) -> None:
        self.store.clear()
        logger.info("Deleted all listings from store")

    def scrape(self, min_price: Optional[str] = None) -> List[CandidateListing]:
        """Run one cycle and return the listings not present in the prior snapshot."""
        threshold = parse_min_price(min_price)
        logger.info("Scrape started, min price filter: %s", threshold)

        html = self.renderer.render(
            self.settings.vendor_url,
            wait_selector=self.settings.listing_selectors.item,
            user_agent=random.choice(self.settings.user_agents),
        )
        logger.info("Rendered page, %d characters", len(html))

        page = self.extractor.parse(html)
        logger.info("Matched %d items, extracted %d listings", page.item_count, len(page.listings))
        to_save = filter_by_min_price(page.listings, threshold)
        logger.info("%d listings after price filter", len(to_save))

        prior_urls = {l.url for l in self.store.list_all()}
        logger.info("Found %d listings in store", len(prior_urls))
        result = reconcile(to_save, prior_urls)
        logger.info("Found %d new listings", len(result.new_listings))

        if page.item_count == 0:
            # Nothing matched the item selector at all: most likely markup drift,
            # so the prior snapshot is kept.
            logger.warning("No listing items matched %r; keeping stored snapshot", self.settings.listing_selectors.item)
            return result.new_listings
        self.replace_snapshot(result)
        return result.new_listings

    def replace_snapshot(self, result: Reconciliation) -> None:
        self.store.clear()
        for item in result.snapshot_to_persist:
            self.store.upsert(item.url, item.raw_price)
        logger.info("Stored %d current listings", len(result.snapshot_to_persist))

    def details(self, url: Optional[str]) -> ListingDetail:
        if url is None or not is_detail_url(self.settings, url):
            raise ValidationError(
                f"url must start with {self.settings.detail_url_prefix}",
                message="Valid 'url' query parameter is required.",
            )
        logger.info("Fetching details for %s", url)
        page = self.fetcher.fetch(url, detail_headers(self.settings))
        detail = self.detail_extractor.extract(page.body, url=url)
        logger.info("Extracted details for %s", url)
        return detail
