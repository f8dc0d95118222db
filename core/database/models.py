# This file defines the database schema for our application using SQLAlchemy's Object Relational Mapper (ORM)
# It stores tracked products, one row per product and platform, and the append-only price history

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

# Create a base class for all ORM models
Base = declarative_base()


class Product(Base):
    """A product being tracked across platforms.

    ``source_url`` is the identity used to avoid creating the same product
    twice; ``id`` is the handle every other lookup uses.
    """
    __tablename__ = "product"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    source_url = Column(String(1024), nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_updated = Column(DateTime, default=datetime.utcnow)

    details = relationship("ProductDetail", back_populates="product", cascade="all, delete-orphan")


class ProductDetail(Base):
    """The latest listing of a product on one platform.

    Rows are upserted on (product_id, platform); every write is paired with a
    PriceHistory row so the price trend survives the overwrite.
    """
    __tablename__ = "product_detail"
    __table_args__ = (UniqueConstraint("product_id", "platform", name="uq_product_platform"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("product.id"), nullable=False, index=True)
    platform = Column(String(50), nullable=False)
    price = Column(Float, nullable=False)
    rating = Column(Float)
    seller = Column(String(255))
    delivery_time = Column(String(100))
    return_policy = Column(String(255))
    warranty = Column(String(255))
    offers = Column(String(512))
    product_link = Column(String(2048))
    reviewcount = Column(Integer, default=0)
    availability = Column(String(20))
    last_scraped = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", back_populates="details")
    history = relationship("PriceHistory", back_populates="detail", cascade="all, delete-orphan",
                           order_by="PriceHistory.id")


class PriceHistory(Base):
    """Append-only price point. Only retention pruning ever deletes rows."""
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_detail_id = Column(Integer, ForeignKey("product_detail.id"), nullable=False, index=True)
    price = Column(Float, nullable=False)
    # Indexed for retention pruning and range queries
    recorded_at = Column(DateTime, default=datetime.utcnow, index=True)

    detail = relationship("ProductDetail", back_populates="history")
