"""Pydantic models for listings and API payloads."""

from .listing import CandidateListing, FeatureEntry, ListingDetail, PersistedListing
from .api import ListingOut, ListingsResponse, MessageResponse, ScrapeRequest, ScrapeResponse

__all__ = [
    "CandidateListing",
    "FeatureEntry",
    "ListingDetail",
    "PersistedListing",
    "ListingOut",
    "ListingsResponse",
    "MessageResponse",
    "ScrapeRequest",
    "ScrapeResponse",
]
