# This file contains the database access layer that handles connections to the database
# and provides the reusable read/write operations the pipeline and the user surfaces need

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, sessionmaker
from typing import List, Optional, Tuple
from datetime import datetime, timedelta
import logging
import pymysql
import sqlalchemy.exc

from core.listing import Availability, PlatformListing
from .models import Base, Product, ProductDetail, PriceHistory

logger = logging.getLogger("database")


def create_db_engine(settings) -> Engine:
    """Build the engine for the configured database URL.

    The engine owns a connection pool; sessions borrow a connection per
    operation and give it back when closed.
    """
    url = settings.DATABASE_URL
    if url.startswith("sqlite"):
        # Worker threads (scheduler, API threadpool) each open their own session
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory whose objects stay readable after the session closes."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def ensure_database_exists(engine: Engine):
    """Ensure that a MySQL database exists before attempting operations."""
    url = make_url(str(engine.url))
    if not url.drivername.startswith("mysql"):
        return
    try:
        # Test if we can connect to the database
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return  # Database exists and connection works
    except sqlalchemy.exc.OperationalError as e:
        if "Unknown database" not in str(e):
            logger.error("Database connection error: %s", e)
            raise
        # Database doesn't exist, so create it
        try:
            create_db_connection = pymysql.connect(
                host=url.host,
                user=url.username,
                password=url.password,
                port=int(url.port or 3306),
            )
            try:
                with create_db_connection.cursor() as cursor:
                    cursor.execute(f"CREATE DATABASE IF NOT EXISTS {url.database}")
                logger.info("Created database '%s'", url.database)
            finally:
                create_db_connection.close()
        except pymysql.Error as conn_err:
            logger.error("Failed to create database: %s", conn_err)
            raise


def init_db(engine: Engine):
    """Create database tables if they don't exist."""
    ensure_database_exists(engine)
    Base.metadata.create_all(bind=engine)


def get_or_create_product(db: Session, name: str, source_url: str) -> Tuple[Product, bool]:
    """Return the product with this source URL, creating it if needed.

    Returns:
        (product, created) where created is True for a new row
    """
    product = db.query(Product).filter(Product.source_url == source_url).first()
    if product:
        return product, False

    product = Product(name=name, source_url=source_url)
    db.add(product)
    try:
        db.commit()
    except sqlalchemy.exc.IntegrityError:
        # Another worker inserted the same source URL first
        db.rollback()
        existing = db.query(Product).filter(Product.source_url == source_url).first()
        if existing is None:
            raise
        return existing, False
    db.refresh(product)
    return product, True


def get_product(db: Session, product_id: int) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()


def list_products(db: Session, limit: Optional[int] = None) -> List[Product]:
    """Every tracked product, oldest first so refresh passes have a stable order."""
    query = db.query(Product).order_by(Product.id.asc())
    if limit:
        query = query.limit(limit)
    return query.all()


def search_products(db: Session, term: str, limit: int = 10) -> List[Product]:
    """Case-insensitive substring search on product names."""
    pattern = f"%{term.lower()}%"
    return (
        db.query(Product)
        .filter(Product.name.ilike(pattern))
        .order_by(Product.last_updated.desc())
        .limit(limit)
        .all()
    )


def touch_product(db: Session, product_id: int, commit: bool = True):
    db.query(Product).filter(Product.id == product_id).update(
        {Product.last_updated: datetime.utcnow()}
    )
    if commit:
        db.commit()


def upsert_listing(db: Session, listing: PlatformListing, commit: bool = True) -> int:
    """Insert or update the row for (product_id, platform) and return its id.

    Repeating the call with the same listing leaves one row whose
    ``last_scraped`` moves forward.
    """
    if listing.product_id is None:
        raise ValueError(f"Listing for {listing.platform} has no product_id")

    detail = (
        db.query(ProductDetail)
        .filter(ProductDetail.product_id == listing.product_id)
        .filter(ProductDetail.platform == listing.platform)
        .first()
    )
    if detail is None:
        detail = ProductDetail(product_id=listing.product_id, platform=listing.platform)
        db.add(detail)

    detail.price = listing.price
    detail.rating = listing.rating
    detail.seller = listing.seller
    detail.delivery_time = listing.delivery_estimate
    detail.return_policy = listing.return_policy
    detail.warranty = listing.warranty
    detail.offers = listing.offer_text
    detail.product_link = listing.product_link
    detail.reviewcount = listing.review_count
    detail.availability = listing.availability.value
    detail.last_scraped = datetime.utcnow()

    db.flush()  # Assigns the id for new rows
    if commit:
        db.commit()
    return detail.id


def record_price_history(db: Session, listing_id: int, price: float, commit: bool = True) -> PriceHistory:
    """Append a price point stamped with the current time."""
    point = PriceHistory(product_detail_id=listing_id, price=price, recorded_at=datetime.utcnow())
    db.add(point)
    db.flush()
    if commit:
        db.commit()
    return point


def prune_history(db: Session, older_than_days: int) -> int:
    """Delete price points older than the given number of days. Returns rows deleted."""
    threshold = datetime.utcnow() - timedelta(days=older_than_days)
    deleted = (
        db.query(PriceHistory)
        .filter(PriceHistory.recorded_at < threshold)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Deleted %d old price history records", deleted)
    return deleted


def get_listings(db: Session, product_id: int) -> List[ProductDetail]:
    """All platform rows of a product, cheapest first."""
    return (
        db.query(ProductDetail)
        .filter(ProductDetail.product_id == product_id)
        .order_by(ProductDetail.price.asc())
        .all()
    )


def get_listing(db: Session, listing_id: int) -> Optional[ProductDetail]:
    return db.query(ProductDetail).filter(ProductDetail.id == listing_id).first()


def get_price_history(db: Session, listing_id: int, days: Optional[int] = 30) -> List[PriceHistory]:
    """Price points of one listing in insertion order, limited to the last ``days`` days."""
    query = db.query(PriceHistory).filter(PriceHistory.product_detail_id == listing_id)
    if days:
        query = query.filter(PriceHistory.recorded_at >= datetime.utcnow() - timedelta(days=days))
    return query.order_by(PriceHistory.id.asc()).all()


def to_listing(detail: ProductDetail) -> PlatformListing:
    """Map a product_detail row back to the pipeline's listing record."""
    return PlatformListing(
        platform=detail.platform,
        price=detail.price,
        rating=detail.rating or 0.0,
        review_count=detail.reviewcount or 0,
        seller=detail.seller or f"{detail.platform} Official",
        delivery_estimate=detail.delivery_time or "",
        return_policy=detail.return_policy or "",
        warranty=detail.warranty or "",
        offer_text=detail.offers or "",
        availability=Availability.parse(detail.availability) or Availability.IN_STOCK,
        product_link=detail.product_link or "",
        last_updated=detail.last_scraped or datetime.utcnow(),
        product_id=detail.product_id,
        listing_id=detail.id,
        source="database",
    )
