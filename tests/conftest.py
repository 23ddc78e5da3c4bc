from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from immo_watch.config import Settings
from immo_watch.models import PersistedListing
from immo_watch.services.details import FetchedPage


AGENCY_HTML = """
<html>
  <body>
    <ul>
      <li class="nd-list__item">
        <a class="in-listingCardTitle" href="https://www.immobiliare.it/annunci/101/">Trilocale via Roma</a>
        <div class="in-listingCardPrice"><span>€ 1.250</span></div>
      </li>
      <li class="nd-list__item">
        <div class="in-listingCardPrice">€ 99.000</div>
      </li>
    </ul>
  </body>
</html>
"""


class FakeStore:
    """In-memory stand-in for the snapshot store, ordered by insertion."""

    def __init__(self, urls: Optional[Dict[str, str]] = None) -> None:
        self.rows: Dict[str, str] = dict(urls or {})
        self.calls: List[str] = []

    def list_all(self) -> List[PersistedListing]:
        self.calls.append("list_all")
        now = datetime.now(timezone.utc)
        return [PersistedListing(url=u, price=p, scraped_at=now) for u, p in reversed(list(self.rows.items()))]

    def clear(self) -> None:
        self.calls.append("clear")
        self.rows.clear()

    def upsert(self, url: str, price: str) -> None:
        self.calls.append("upsert")
        self.rows.pop(url, None)
        self.rows[url] = price


class FakeRenderer:
    def __init__(self, html: str = AGENCY_HTML, error: Optional[Exception] = None) -> None:
        self.html = html
        self.error = error
        self.calls: List[dict] = []

    def render(self, url: str, wait_selector: str, user_agent: str) -> str:
        self.calls.append({"url": url, "wait_selector": wait_selector, "user_agent": user_agent})
        if self.error is not None:
            raise self.error
        return self.html


class FakeFetcher:
    def __init__(self, body: str = "", error: Optional[Exception] = None) -> None:
        self.body = body
        self.error = error
        self.calls: List[dict] = []

    def fetch(self, url: str, headers: dict[str, str]) -> FetchedPage:
        self.calls.append({"url": url, "headers": headers})
        if self.error is not None:
            raise self.error
        return FetchedPage(status=200, body=self.body)


@pytest.fixture
def settings() -> Settings:
    return Settings()
