import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import sessionmaker

from core.listing import PlatformListing
from . import operations
from .models import PriceHistory, Product

logger = logging.getLogger("database")


class PersistenceGateway:
    """The pipeline's view of the database.

    Every method opens its own session and closes it before returning, so
    concurrent workers never share a connection.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def create_tables(self) -> None:
        operations.init_db(self.session_factory.kw["bind"])

    @classmethod
    def from_settings(cls, settings, create_tables: bool = False) -> "PersistenceGateway":
        engine = operations.create_db_engine(settings)
        if create_tables:
            operations.init_db(engine)
        return cls(operations.make_session_factory(engine))

    def upsert(self, listing: PlatformListing) -> int:
        with self.session_factory() as db:
            return operations.upsert_listing(db, listing)

    def record_price_history(self, listing_id: int, price: float) -> None:
        with self.session_factory() as db:
            operations.record_price_history(db, listing_id, price)

    def prune_history(self, older_than_days: int) -> int:
        with self.session_factory() as db:
            return operations.prune_history(db, older_than_days)

    def save_listing(self, listing: PlatformListing) -> int:
        """Upsert one listing and append its price point in a single transaction."""
        with self.session_factory() as db:
            try:
                listing_id = operations.upsert_listing(db, listing, commit=False)
                operations.record_price_history(db, listing_id, listing.price, commit=False)
                db.commit()
            except Exception:
                db.rollback()
                raise
        return listing_id

    def save_listings(self, product_id: int, listings: Sequence[PlatformListing]) -> List[int]:
        """Persist a fetch result platform by platform.

        Each platform is committed on its own, so if one write fails the
        platforms before it stay saved and the error reaches the caller.
        """
        ids = []
        for listing in listings:
            if listing.product_id != product_id:
                listing = listing.model_copy(update={"product_id": product_id})
            ids.append(self.save_listing(listing))
            logger.info("Saved %s: ₹%.2f (%.1f)", listing.platform, listing.price, listing.rating)
        with self.session_factory() as db:
            operations.touch_product(db, product_id)
        return ids

    def get_or_create_product(self, name: str, source_url: str) -> Tuple[Product, bool]:
        with self.session_factory() as db:
            return operations.get_or_create_product(db, name, source_url)

    def get_product(self, product_id: int) -> Optional[Product]:
        with self.session_factory() as db:
            return operations.get_product(db, product_id)

    def list_products(self, limit: Optional[int] = None) -> List[Product]:
        with self.session_factory() as db:
            return operations.list_products(db, limit)

    def search_products(self, term: str, limit: int = 10) -> List[Product]:
        with self.session_factory() as db:
            return operations.search_products(db, term, limit)

    def touch_product(self, product_id: int) -> None:
        with self.session_factory() as db:
            operations.touch_product(db, product_id)

    def get_listings(self, product_id: int) -> List[PlatformListing]:
        with self.session_factory() as db:
            return [operations.to_listing(detail) for detail in operations.get_listings(db, product_id)]

    def get_listing(self, listing_id: int) -> Optional[PlatformListing]:
        with self.session_factory() as db:
            detail = operations.get_listing(db, listing_id)
            return operations.to_listing(detail) if detail else None

    def get_price_history(self, listing_id: int, days: Optional[int] = 30) -> List[PriceHistory]:
        with self.session_factory() as db:
            return operations.get_price_history(db, listing_id, days)
