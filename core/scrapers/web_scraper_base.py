import requests
from bs4 import BeautifulSoup
from typing import Dict, Optional
import time
import random
from core.scrapers.base import BaseScraper
from core.scrapers.search_page import SearchPage


class HttpScraper(BaseScraper):
    """Fast scraping engine: one HTTP GET per search, parsed with BeautifulSoup.

    Cheap and quick, but it runs no JavaScript and is the first thing
    marketplaces block, so expect frequent empty results.
    """

    def __init__(self, pages: Dict[str, SearchPage], user_agent: Optional[str] = None,
                 delay_seconds: float = 3.0, timeout: float = 15.0):
        """Initialize the HTTP scraper.

        Args:
            pages: Platform -> SearchPage definitions this engine can read
            user_agent: Optional custom user agent string
            delay_seconds: Upper bound of the random pause taken before each
                           request; 0 disables it
            timeout: Request timeout in seconds
        """
        super().__init__("http", pages)
        self.user_agent = user_agent or (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36"
        )
        self.delay_seconds = delay_seconds
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9",
            "Accept-Language": "en-US,en;q=0.9",
        })

    def fetch(self, url: str, page: SearchPage) -> BeautifulSoup:
        """Fetch a page and parse it with BeautifulSoup.

        Raises:
            requests.RequestException: If the request fails or returns 4XX/5XX
        """
        self.logger.info("Fetching %s", url)

        # Add a small delay to be respectful to the server
        if self.delay_seconds > 0:
            time.sleep(random.uniform(self.delay_seconds / 3, self.delay_seconds))

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()  # Raise exception for 4XX/5XX responses
            return BeautifulSoup(response.text, "lxml")
        except requests.RequestException as e:
            self.logger.error("Error fetching %s: %s", url, str(e))
            raise
