"""Request and response bodies of the HTTP API."""

from __future__ import annotations

from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .listing import CandidateListing, PersistedListing


class ListingOut(BaseModel):
    url: str
    price: str

    @classmethod
    def from_candidate(cls, item: CandidateListing) -> "ListingOut":
        return cls(url=item.url, price=item.raw_price)

    @classmethod
    def from_persisted(cls, item: PersistedListing) -> "ListingOut":
        return cls(url=item.url, price=item.price)


class ListingsResponse(BaseModel):
    listings: List[ListingOut]


class ScrapeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    min_price: Optional[str] = Field(default=None, alias="minPrice")

    @field_validator("min_price", mode="before")
    @classmethod
    def _stringify(cls, v: object) -> object:
        # Numbers are accepted as text; anything else unusable means no filter
        if isinstance(v, bool):
            return None
        if isinstance(v, (int, float)):
            return str(v)
        return v if isinstance(v, str) else None


class ScrapeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_listings: List[ListingOut] = Field(default_factory=list, alias="newListings")

    @classmethod
    def from_candidates(cls, items: Iterable[CandidateListing]) -> "ScrapeResponse":
        return cls(new_listings=[ListingOut.from_candidate(i) for i in items])


class MessageResponse(BaseModel):
    message: str
