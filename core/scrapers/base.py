# This file defines the abstract base class for the page-scraping engines.
# An engine knows HOW to fetch a page (plain HTTP, headless browser); the
# SearchPage definitions it is given know WHAT to read from each platform.

import abc
import logging
from typing import Dict, Optional

from bs4 import BeautifulSoup

from core.listing import PlatformListing
from core.scrapers.search_page import SearchPage


class BaseScraper(abc.ABC):
    """Base class for page-scraping engines.

    The contract is deliberately narrow: given a platform and a product name,
    return one populated listing or fail (return None or raise). Engines are
    interchangeable, so the orchestrator can try a fast one before a slow one
    without knowing how either works.
    """

    def __init__(self, name: str, pages: Dict[str, SearchPage]):
        """Initialize the scraper.

        Args:
            name: Engine identifier (e.g. "http", "browser"), recorded as the
                  listing source.
            pages: Platform name -> SearchPage definition this engine can read.
        """
        self.name = name
        self.pages = pages
        self.logger = logging.getLogger(f"scraper.{name}")

    def supports(self, platform: str) -> bool:
        return platform in self.pages

    def scrape(self, platform: str, product_name: str,
               product_id: Optional[int] = None) -> Optional[PlatformListing]:
        """Fetch the first search result for a product on one platform.

        Returns:
            A listing, or None when the platform is unsupported, the page was
            blocked, or no priced result could be found.

        Raises:
            Whatever the engine's transport raises (connection errors,
            timeouts, browser failures). Callers treat that as failure too.
        """
        page = self.pages.get(platform)
        if page is None:
            self.logger.debug("No page definition for %s", platform)
            return None

        url = page.search_url(product_name)
        self.logger.info("Scraping %s for '%s'", platform, product_name)
        soup = self.fetch(url, page)
        listing = page.parse(soup, url, product_id=product_id, source=self.name)
        if listing is None or not listing.is_priced:
            self.logger.info("No priced result on %s for '%s'", platform, product_name)
            return None
        return listing

    @abc.abstractmethod
    def fetch(self, url: str, page: SearchPage) -> BeautifulSoup:
        """Load a search page and return it parsed."""
        raise NotImplementedError("Concrete scraper classes must implement fetch() method")
