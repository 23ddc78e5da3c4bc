"""Service layer for the listing watcher."""

from .details import DetailExtractor, RequestsPageFetcher
from .pipeline import ScrapeService
from .pricing import filter_by_min_price, normalize_price
from .reconcile import Reconciliation, reconcile
from .scraper import ListingExtractor, SeleniumPageRenderer

__all__ = [
    "DetailExtractor",
    "ListingExtractor",
    "Reconciliation",
    "RequestsPageFetcher",
    "ScrapeService",
    "SeleniumPageRenderer",
    "filter_by_min_price",
    "normalize_price",
    "reconcile",
]
