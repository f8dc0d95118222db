import logging
from typing import Dict, List, Type
from core.scrapers.base import BaseScraper
from core.scrapers.browser_scraper import BrowserScraper
from core.scrapers.search_page import SearchPage
from core.scrapers.web_scraper_base import HttpScraper
from core.scrapers.websites.amazon_scraper import AmazonSearchPage
from core.scrapers.websites.flipkart_scraper import FlipkartSearchPage

logger = logging.getLogger("scraper.factory")


class ScraperFactory:
    """Factory for creating scraping engines by name.

    The orchestrator never imports engine classes directly; it asks for the
    engines named in settings, in order, so swapping or disabling one is a
    configuration change.
    """

    # Map of engine names to scraper classes, fastest first
    SCRAPERS: Dict[str, Type[BaseScraper]] = {
        "http": HttpScraper,
        "browser": BrowserScraper,
    }

    # Platforms with a search-page definition
    PAGES: Dict[str, Type[SearchPage]] = {
        AmazonSearchPage.platform: AmazonSearchPage,
        FlipkartSearchPage.platform: FlipkartSearchPage,
    }

    @classmethod
    def default_pages(cls) -> Dict[str, SearchPage]:
        return {platform: page_class() for platform, page_class in cls.PAGES.items()}

    @classmethod
    def create_scraper(cls, engine: str, **kwargs) -> BaseScraper:
        """Create and return a scraper for the specified engine.

        Args:
            engine: Name of the engine (must be in SCRAPERS dictionary)
            **kwargs: Additional keyword arguments for the scraper
                (delay_seconds, user_agent, ...)

        Raises:
            ValueError: If the engine name is unknown
        """
        if engine not in cls.SCRAPERS:
            raise ValueError(f"Unknown scraping engine '{engine}'")
        pages = kwargs.pop("pages", None) or cls.default_pages()
        return cls.SCRAPERS[engine](pages=pages, **kwargs)

    @classmethod
    def create_engines(cls, settings) -> List[BaseScraper]:
        """Engines listed in settings.SCRAPE_ENGINES, in the configured order."""
        engines = []
        for name in settings.scrape_engines:
            try:
                engines.append(cls.create_scraper(name, delay_seconds=settings.SCRAPE_DELAY_SECONDS))
            except ValueError as e:
                logger.warning("Skipping scraping engine: %s", e)
        return engines
