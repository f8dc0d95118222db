# The acquisition pipeline: an ordered chain of strategies, each tried only
# after the previous one definitively failed. Nothing here runs in parallel;
# the AI call is preferred and the scrapers are rate-limit sensitive.

import logging
import random
from typing import List, Optional, Sequence

from tabulate import tabulate

from core.ai.gemini_client import GeminiClient
from core.exceptions import NoListingsError
from core.listing import PlatformListing
from core.providers.base import ListingProvider
from core.providers.gemini_provider import GeminiProvider
from core.providers.scrape_provider import ScrapeProvider
from core.providers.synthetic_provider import SyntheticProvider
from core.scrapers.scraper_factory import ScraperFactory
from core.synthesis.synthesizer import Synthesizer
from core import platforms as catalog

logger = logging.getLogger("pipeline.orchestrator")


class Orchestrator:
    """Runs the provider chains for multi-platform and single-platform queries.

    Args:
        chain: Providers for ``fetch_all``, highest priority first.
        single_chain: Providers for ``fetch_one``; defaults to ``chain``.
    """

    def __init__(self, chain: Sequence[ListingProvider],
                 single_chain: Optional[Sequence[ListingProvider]] = None):
        self.chain = list(chain)
        self.single_chain = list(single_chain) if single_chain is not None else list(self.chain)

    @classmethod
    def from_settings(cls, settings, rng: Optional[random.Random] = None) -> "Orchestrator":
        """Build the standard chains: Gemini, scraping, synthesis (scraping first for one platform)."""
        gemini = GeminiProvider(GeminiClient(settings)) if settings.USE_GEMINI else None
        engines = ScraperFactory.create_engines(settings)
        scrape = ScrapeProvider(engines) if engines else None
        synthetic = None
        if settings.USE_SYNTHETIC_FALLBACK:
            synthetic = SyntheticProvider(Synthesizer(rng) if rng else None)

        chain = [p for p in (gemini, scrape, synthetic) if p is not None]
        single_chain = [p for p in (scrape, gemini, synthetic) if p is not None]
        return cls(chain, single_chain)

    def fetch_all(self, product_name: str, product_id: Optional[int] = None) -> List[PlatformListing]:
        """Listings for every relevant platform from the first strategy that produces any.

        Raises:
            NoListingsError: every strategy failed (only possible when the
                synthetic fallback is disabled)
        """
        platforms = catalog.relevant_platforms(product_name)
        logger.info("Fetching '%s' (category %s) for %s",
                    product_name, catalog.classify(product_name), ", ".join(platforms))

        for provider in self.chain:
            try:
                listings = provider.try_fetch(product_name, platforms, product_id)
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.warning("Strategy %s raised: %s", provider.name, e)
                continue

            listings = self._usable(listings, product_id)
            if listings:
                logger.info("Strategy %s succeeded with %d platforms", provider.name, len(listings))
                log_summary(listings)
                return listings
            logger.info("Strategy %s failed or returned no data", provider.name)

        logger.error("All strategies failed for '%s'", product_name)
        raise NoListingsError(product_name)

    def fetch_one(self, platform_hint: str, product_name: str,
                  product_id: Optional[int] = None) -> Optional[PlatformListing]:
        """Listing for one platform, or None when every strategy failed."""
        platform = catalog.canonical_platform(platform_hint) or platform_hint
        platforms = catalog.relevant_platforms(product_name)
        logger.info("Fetching '%s' on %s", product_name, platform)

        for provider in self.single_chain:
            try:
                listing = provider.try_fetch_one(platform, product_name, platforms, product_id)
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.warning("Strategy %s raised: %s", provider.name, e)
                continue

            usable = self._usable([listing] if listing else None, product_id)
            if usable:
                logger.info("Strategy %s found %s", provider.name, platform)
                return usable[0]
            logger.info("Strategy %s found nothing for %s", provider.name, platform)

        logger.error("All strategies failed for '%s' on %s", product_name, platform)
        return None

    @staticmethod
    def _usable(listings, product_id) -> List[PlatformListing]:
        # A price of zero or less means "missing"; such listings never leave the pipeline
        if not listings:
            return []
        usable = []
        for listing in listings:
            if listing is None or not listing.is_priced:
                continue
            if product_id is not None and listing.product_id != product_id:
                listing = listing.model_copy(update={"product_id": product_id})
            usable.append(listing)
        return usable


def log_summary(listings: Sequence[PlatformListing]) -> None:
    """Platform comparison table at DEBUG level."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    rows = [
        [listing.platform, f"₹{listing.price:,.2f}", f"{listing.rating:.1f}", listing.availability.value]
        for listing in listings
    ]
    logger.debug("\n%s", tabulate(rows, headers=["Platform", "Price", "Rating", "Availability"]))
