"""Agency page rendering and listing-card extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Protocol
from urllib.parse import urljoin, urlsplit

from scrapy.http import HtmlResponse

from immo_watch.config import Settings
from immo_watch.errors import MalformedDocumentError, RenderError, UpstreamTimeoutError
from immo_watch.models import CandidateListing
from .selectors import extract_first


logger = logging.getLogger(__name__)


class PageRenderer(Protocol):
    def render(self, url: str, wait_selector: str, user_agent: str) -> str:
        ...


@dataclass
class ListingPage:
    """Result of parsing the agency page.

    ``item_count`` is how many elements matched the item selector, including
    decorative ones that produced no listing.
    """

    item_count: int = 0
    listings: List[CandidateListing] = field(default_factory=list)


class ListingExtractor:
    """Extract ``CandidateListing`` objects from the rendered agency page."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.selectors = settings.listing_selectors
        parts = urlsplit(settings.vendor_url)
        self.origin = f"{parts.scheme}://{parts.netloc}"

    def parse(self, html: str) -> ListingPage:
        if not isinstance(html, str):
            raise MalformedDocumentError(f"expected markup text, got {type(html).__name__}")
        response = HtmlResponse(url=self.settings.vendor_url, body=html, encoding="utf-8")
        page = ListingPage()
        for card in response.css(self.selectors.item):
            page.item_count += 1
            link = card.css(self.selectors.link)
            if not link:
                continue
            href = link[0].attrib.get("href")
            if not href or self.settings.listing_url_marker not in href:
                continue
            # Absolute links keep their own host; relative ones resolve against the vendor origin
            url = urljoin(self.origin, href)
            price = extract_first(card, self.selectors.price, default="")
            page.listings.append(CandidateListing(url=url, raw_price=price))
        return page

    def extract(self, html: str) -> List[CandidateListing]:
        return self.parse(html).listings


class SeleniumPageRenderer:
    """Render a JavaScript-driven page with headless Chrome.

    Images, stylesheets and fonts are blocked at the network layer. Navigation
    returns after DOMContentLoaded and the call then waits for ``wait_selector``
    to appear. The browser is always shut down before returning or raising.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _options(self, user_agent: str):
        from selenium.webdriver.chrome.options import Options  # type: ignore[import-not-found]

        options = Options()
        options.add_argument("--headless=new")
        options.add_argument("--no-sandbox")
        options.add_argument("--disable-dev-shm-usage")
        options.add_argument("--ignore-certificate-errors")
        options.add_argument(f"--user-agent={user_agent}")
        # DOMContentLoaded, without waiting for subresources
        options.page_load_strategy = "eager"
        return options

    def render(self, url: str, wait_selector: str, user_agent: str) -> str:
        from selenium import webdriver  # type: ignore[import-not-found]
        from selenium.common.exceptions import TimeoutException, WebDriverException  # type: ignore[import-not-found]
        from selenium.webdriver.common.by import By  # type: ignore[import-not-found]
        from selenium.webdriver.support import expected_conditions as EC  # type: ignore[import-not-found]
        from selenium.webdriver.support.ui import WebDriverWait  # type: ignore[import-not-found]

        driver = None
        try:
            logger.info("Launching browser for %s", url)
            driver = webdriver.Chrome(options=self._options(user_agent))
            driver.execute_cdp_cmd("Network.enable", {})
            driver.execute_cdp_cmd("Network.setBlockedURLs", {"urls": self.settings.blocked_url_patterns})
            driver.set_page_load_timeout(self.settings.render_timeout_secs)
            driver.get(url)
            logger.info("Navigation done, waiting for %s", wait_selector)
            WebDriverWait(driver, self.settings.selector_timeout_secs).until(
                EC.presence_of_element_located((By.CSS_SELECTOR, wait_selector))
            )
            return str(driver.page_source)
        except TimeoutException as exc:
            raise UpstreamTimeoutError(str(exc) or "render timed out", message="Timeout during scraping operation.") from exc
        except WebDriverException as exc:
            raise RenderError(str(exc)) from exc
        finally:
            if driver is not None:
                driver.quit()
                logger.info("Browser closed")
