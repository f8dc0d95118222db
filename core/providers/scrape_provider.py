from typing import List, Optional, Sequence

from core.listing import PlatformListing
from core.providers.base import ListingProvider
from core.scrapers.base import BaseScraper
from core import platforms as catalog


class ScrapeProvider(ListingProvider):
    """Page-scraping strategy over a fixed, small set of platforms.

    For each platform the engines are tried in order (fast first) until one
    returns a priced listing. Whatever subset succeeds is returned.
    """

    name = "scrape"

    def __init__(self, engines: Sequence[BaseScraper],
                 scrape_platforms: Sequence[str] = catalog.SCRAPE_PLATFORMS):
        super().__init__()
        self.engines = list(engines)
        self.scrape_platforms = list(scrape_platforms)

    def try_fetch(self, product_name: str, platforms: Sequence[str],
                  product_id: Optional[int] = None) -> Optional[List[PlatformListing]]:
        results = []
        for platform in self.scrape_platforms:
            listing = self.scrape_platform(platform, product_name, product_id)
            if listing is not None:
                results.append(listing)
        return results or None

    def try_fetch_one(self, platform: str, product_name: str, platforms: Sequence[str],
                      product_id: Optional[int] = None) -> Optional[PlatformListing]:
        return self.scrape_platform(catalog.canonical_platform(platform) or platform,
                                    product_name, product_id)

    def scrape_platform(self, platform: str, product_name: str,
                        product_id: Optional[int] = None) -> Optional[PlatformListing]:
        for engine in self.engines:
            if not engine.supports(platform):
                continue
            try:
                listing = engine.scrape(platform, product_name, product_id)
            except Exception as e:  # pylint: disable=broad-exception-caught
                self.logger.warning("%s engine failed on %s: %s", engine.name, platform, e)
                continue
            if listing is not None and listing.is_priced:
                self.logger.info("%s engine scraped %s at %.2f", engine.name, platform, listing.price)
                return listing
            self.logger.info("%s engine returned nothing for %s", engine.name, platform)
        return None
