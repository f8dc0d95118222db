from typing import List, Optional, Sequence

from core.ai.gemini_client import GeminiClient
from core.exceptions import NoDataError, ProviderError, ProviderNotConfigured
from core.listing import PlatformListing
from core.providers.base import ListingProvider
from core import platforms as catalog


class GeminiProvider(ListingProvider):
    """AI generation strategy: one Gemini call covers every relevant platform."""

    name = "gemini"

    def __init__(self, client: GeminiClient):
        super().__init__()
        self.client = client

    def try_fetch(self, product_name: str, platforms: Sequence[str],
                  product_id: Optional[int] = None) -> Optional[List[PlatformListing]]:
        try:
            return self.client.generate_all(product_name, platforms, product_id)
        except ProviderNotConfigured as e:
            self.logger.info("Skipping AI generation: %s", e)
        except NoDataError as e:
            self.logger.warning("Gemini returned no data for '%s': %s", product_name, e)
        except ProviderError as e:
            self.logger.warning("Gemini failed for '%s': %s", product_name, e)
        return None

    def try_fetch_one(self, platform: str, product_name: str, platforms: Sequence[str],
                      product_id: Optional[int] = None) -> Optional[PlatformListing]:
        # Ask for the whole set; the model prices more consistently with peers in view
        listings = self.try_fetch(product_name, catalog.with_platform(platforms, platform), product_id)
        return self.match(listings, platform)
