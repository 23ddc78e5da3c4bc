"""Fetch and parse a single listing page."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import List, Optional, Protocol

import requests
from scrapy.http import HtmlResponse

from immo_watch.config import Settings
from immo_watch.errors import MalformedDocumentError, UpstreamHTTPError, UpstreamTimeoutError
from immo_watch.models import FeatureEntry, ListingDetail
from .selectors import XPath, extract_all, extract_first, extract_list_pairs, extract_pairs


logger = logging.getLogger(__name__)


@dataclass
class FetchedPage:
    status: int
    body: str


class PageFetcher(Protocol):
    def fetch(self, url: str, headers: dict[str, str]) -> FetchedPage:
        ...


class RequestsPageFetcher:
    """HTTP GET bounded by one deadline for the whole exchange.

    ``requests`` applies its timeout per connect and per socket read, so the
    body is streamed and the deadline is checked between chunks.
    """

    chunk_size = 64 * 1024

    def __init__(self, timeout: float = 25.0) -> None:
        self.timeout = timeout

    def fetch(self, url: str, headers: dict[str, str]) -> FetchedPage:
        deadline = time.monotonic() + self.timeout
        try:
            resp = requests.get(url, headers=headers, timeout=self.timeout, stream=True)
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise UpstreamTimeoutError(str(exc), message="No response received from target server.") from exc
        try:
            resp.raise_for_status()
            chunks: List[bytes] = []
            for chunk in resp.iter_content(chunk_size=self.chunk_size):
                if time.monotonic() > deadline:
                    raise UpstreamTimeoutError(
                        f"body not received within {self.timeout:g}s",
                        message="No response received from target server.",
                    )
                chunks.append(chunk)
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise UpstreamHTTPError(status, str(exc)) from exc
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise UpstreamTimeoutError(str(exc), message="No response received from target server.") from exc
        finally:
            resp.close()
        logger.info("Detail fetch done (status %s)", resp.status_code)
        body = b"".join(chunks).decode(resp.encoding or "utf-8", errors="replace")
        return FetchedPage(status=resp.status_code, body=body)


def detail_headers(settings: Settings) -> dict[str, str]:
    headers = settings.headers()
    headers["User-Agent"] = random.choice(settings.user_agents)
    headers["Referer"] = settings.vendor_url
    return headers


class DetailExtractor:
    """Build a ``ListingDetail`` from listing-page HTML.

    Each field walks its selector chain, newest page template first. Fields
    that cannot be found fall back to ``UNKNOWN`` or an empty list; only input
    that is not a document at all raises ``MalformedDocumentError``.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.selectors = settings.detail_selectors

    def _document(self, html: str, url: Optional[str]) -> HtmlResponse:
        if not isinstance(html, str) or not html.strip():
            raise MalformedDocumentError("empty or non-text response body")
        try:
            return HtmlResponse(url=url or self.settings.vendor_url, body=html, encoding="utf-8")
        except (TypeError, ValueError) as exc:
            raise MalformedDocumentError(str(exc)) from exc

    def extract(self, html: str, url: Optional[str] = None) -> ListingDetail:
        doc = self._document(html, url)
        sel = self.selectors
        features = self._features(doc)
        return ListingDetail(
            price=extract_first(doc, sel.price),
            address=extract_first(doc, sel.address),
            description=extract_first(doc, sel.description),
            features=features,
            other_features=extract_all(doc, sel.other_features),
            surface=self._surface(doc, features),
            costs=self._costs(doc),
        )

    def _features(self, doc: HtmlResponse) -> List[FeatureEntry]:
        features = extract_list_pairs(doc, self.selectors.feature_lists)
        if features:
            return features
        # Older template: loose dt/dd pairs marked by class
        return extract_pairs(doc.css(self.selectors.feature_term), value_class=self.selectors.feature_value_class)

    def _surface(self, doc: HtmlResponse, features: List[FeatureEntry]) -> str:
        for entry in features:
            key = entry.key.lower()
            if any(k in key for k in self.selectors.surface_keys):
                return entry.value
        return extract_first(doc, self.selectors.surface)

    def _costs(self, doc: HtmlResponse) -> List[FeatureEntry]:
        conditions = " or ".join(f"contains(., '{h}')" for h in self.selectors.cost_headings)
        heading_list = XPath(f"(//h2[{conditions}])[1]/following-sibling::*[1][self::dl]")
        costs = extract_list_pairs(doc, [heading_list])
        if costs:
            return costs
        return extract_list_pairs(doc, self.selectors.cost_lists)


def is_detail_url(settings: Settings, url: str) -> bool:
    return url.startswith(settings.detail_url_prefix)
