from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from core.listing import Availability


# Request Models
class ProductRequest(BaseModel):
    """Request model for tracking a product."""

    name: str = Field(min_length=1, description="Product name to search for, e.g. 'iPhone 15'")


class CompareRequest(BaseModel):
    """Request model for a one-off price comparison."""

    name: str = Field(min_length=1, description="Product name to compare")


# Response Models
class Listing(BaseModel):
    """API representation of one platform's listing."""

    listing_id: Optional[int] = None
    product_id: Optional[int] = None
    platform: str
    price: float
    rating: float
    review_count: int
    seller: str
    delivery_estimate: str
    return_policy: str
    warranty: str
    offer_text: str
    availability: Availability
    product_link: str
    last_updated: datetime
    source: str

    class Config:
        from_attributes = True


class Product(BaseModel):
    """API representation of a tracked product."""

    id: int
    name: str
    source_url: str
    created_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductResponse(BaseModel):
    """A product with its stored listings, cheapest first."""

    product: Product
    listings: List[Listing]
    count: int


class CompareResponse(BaseModel):
    """Response for a comparison that was not stored."""

    name: str
    listings: List[Listing]
    count: int


class PricePoint(BaseModel):
    id: int
    price: float
    recorded_at: datetime

    class Config:
        from_attributes = True


class HistoryResponse(BaseModel):
    """Price history of one listing."""

    listing_id: int
    platform: str
    days: Optional[int] = None
    points: List[PricePoint]
    count: int


class RecommendationResponse(BaseModel):
    best_price: Listing
    best_rated: Listing
    price_gap: float
    gap_percent: float
    advice: str


class RefreshReportResponse(BaseModel):
    """Outcome of a refresh pass over all products."""

    trigger: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    refreshed: List[int]
    failed: List[int]
    stopped_early: bool

    class Config:
        from_attributes = True


class TriggerResponse(BaseModel):
    accepted: bool
    message: str
    report: Optional[RefreshReportResponse] = None


class PruneResponse(BaseModel):
    deleted: int
    older_than_days: int


class ErrorResponse(BaseModel):
    """Error response model."""

    detail: str
