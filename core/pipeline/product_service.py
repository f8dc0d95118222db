import logging
from typing import List, Optional, Tuple

from core import platforms as catalog
from core.analysis.recommender import Recommendation, Recommender
from core.database.gateway import PersistenceGateway
from core.database.models import Product
from core.exceptions import NoListingsError, ProductNotFoundError
from core.listing import PlatformListing
from core.pipeline.orchestrator import Orchestrator

logger = logging.getLogger("pipeline.products")


class ProductService:
    """Use cases shared by the CLI, the HTTP API and the refresh scheduler."""

    def __init__(self, gateway: PersistenceGateway, orchestrator: Orchestrator,
                 recommender: Optional[Recommender] = None):
        self.gateway = gateway
        self.orchestrator = orchestrator
        self.recommender = recommender or Recommender()

    def add_product(self, name: str) -> Tuple[Product, List[PlatformListing]]:
        """Start tracking a product by name.

        A product already tracked under the same name returns its stored
        listings without a new fetch.

        Raises:
            ValueError: blank name
            NoListingsError: every strategy failed; the product stays tracked
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Product name must not be empty")

        product, created = self.gateway.get_or_create_product(name, catalog.search_source_url(name))
        if not created:
            stored = self.gateway.get_listings(product.id)
            if stored:
                logger.info("Product '%s' already tracked as #%d", name, product.id)
                return product, stored
            # An earlier add found no data; try again
            logger.info("Product #%d has no stored listings yet, fetching", product.id)
        else:
            logger.info("Tracking new product '%s' as #%d", name, product.id)
        listings = self.orchestrator.fetch_all(product.name, product.id)
        self.gateway.save_listings(product.id, listings)
        return product, self.gateway.get_listings(product.id)

    def compare(self, name: str) -> List[PlatformListing]:
        """Fetch listings for a name without storing anything."""
        name = (name or "").strip()
        if not name:
            raise ValueError("Product name must not be empty")
        return sorted(self.orchestrator.fetch_all(name), key=lambda x: x.price)

    def get_product(self, product_id: int) -> Product:
        product = self.gateway.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def refresh_product(self, product_id: int) -> List[PlatformListing]:
        """Re-fetch a tracked product and store the new prices.

        A product whose source URL points at one platform is refreshed on that
        platform only; products added by name are refreshed everywhere.
        """
        product = self.get_product(product_id)
        platform = catalog.platform_from_url(product.source_url)

        if platform:
            listing = self.orchestrator.fetch_one(platform, product.name, product.id)
            if listing is None:
                raise NoListingsError(product.name)
            listings = [listing]
        else:
            listings = self.orchestrator.fetch_all(product.name, product.id)

        self.gateway.save_listings(product.id, listings)
        logger.info("Refreshed #%d '%s' (%d platforms)", product.id, product.name, len(listings))
        return self.gateway.get_listings(product.id)

    def recommend(self, product_id: int) -> Optional[Recommendation]:
        self.get_product(product_id)
        return self.recommender.recommend(self.gateway.get_listings(product_id))

    @classmethod
    def from_settings(cls, settings, create_tables: bool = False) -> "ProductService":
        """Wire the database gateway and the provider chains from one Settings object."""
        gateway = PersistenceGateway.from_settings(settings, create_tables=create_tables)
        return cls(gateway, Orchestrator.from_settings(settings))
