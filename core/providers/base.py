import abc
import logging
from typing import List, Optional, Sequence

from core.listing import PlatformListing


class ListingProvider(abc.ABC):
    """One data-acquisition strategy in the fallback chain.

    ``try_fetch`` returns a non-empty list on success and None on failure.
    Implementations catch their own expected failures and log them; the
    orchestrator still guards each call in case something unexpected leaks.
    """

    name = "provider"

    def __init__(self):
        self.logger = logging.getLogger(f"provider.{self.name}")

    @abc.abstractmethod
    def try_fetch(self, product_name: str, platforms: Sequence[str],
                  product_id: Optional[int] = None) -> Optional[List[PlatformListing]]:
        """Listings for as many of ``platforms`` as this strategy can produce."""
        raise NotImplementedError

    def try_fetch_one(self, platform: str, product_name: str, platforms: Sequence[str],
                      product_id: Optional[int] = None) -> Optional[PlatformListing]:
        """Listing for a single platform.

        ``platforms`` is the product's full relevant set; the default only
        asks for ``platform`` itself.
        """
        return self.match(self.try_fetch(product_name, [platform], product_id), platform)

    @staticmethod
    def match(listings: Optional[List[PlatformListing]], platform: str) -> Optional[PlatformListing]:
        """Case-insensitive platform lookup in a result list."""
        if not listings:
            return None
        wanted = platform.strip().lower()
        for listing in listings:
            if listing.platform.strip().lower() == wanted:
                return listing
        return None
