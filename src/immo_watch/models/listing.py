"""Data models for scraped listings."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from immo_watch.config import UNKNOWN


class CandidateListing(BaseModel):
    """A listing freshly extracted from the agency page."""

    model_config = ConfigDict(frozen=True)

    url: str
    raw_price: str = ""


class PersistedListing(BaseModel):
    """A row of the current snapshot."""

    url: str
    price: str
    scraped_at: Optional[datetime] = None


class FeatureEntry(BaseModel):
    key: str
    value: str


class ListingDetail(BaseModel):
    """Structured fields of a single listing page.

    Missing fields hold ``UNKNOWN`` (or an empty list), never ``None``.
    """

    model_config = ConfigDict(populate_by_name=True)

    price: str = UNKNOWN
    address: str = UNKNOWN
    description: str = UNKNOWN
    features: List[FeatureEntry] = Field(default_factory=list)
    other_features: List[str] = Field(default_factory=list, alias="otherFeatures")
    surface: str = UNKNOWN
    costs: List[FeatureEntry] = Field(default_factory=list)
