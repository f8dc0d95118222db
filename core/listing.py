# This file defines the in-memory record every acquisition strategy produces:
# one platform's snapshot of a product's commercial attributes.

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Availability(str, Enum):
    """Stock state of a listing. Values are the strings stored in the database."""

    IN_STOCK = "In Stock"
    LIMITED_STOCK = "Limited Stock"
    OUT_OF_STOCK = "Out of Stock"

    @classmethod
    def parse(cls, value) -> Optional["Availability"]:
        """Lenient parser for provider and database strings.

        Accepts "In Stock", "InStock", "in_stock", "Only 3 left", "Currently
        unavailable" and similar. Returns None when nothing matches.
        """
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        text = str(value).strip().lower().replace("_", " ").replace("-", " ")
        compact = text.replace(" ", "")
        if not compact:
            return None
        if "outofstock" in compact or "unavailable" in compact or "soldout" in compact:
            return cls.OUT_OF_STOCK
        if "limited" in compact or "left" in text or "few" in text:
            return cls.LIMITED_STOCK
        if "instock" in compact or compact == "available":
            return cls.IN_STOCK
        return None


class PlatformListing(BaseModel):
    """One platform's view of one product.

    A price of zero or less means the source could not determine a price;
    such listings are never returned by the pipeline (see ``is_priced``).
    """

    platform: str = Field(min_length=1)
    price: float
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    review_count: int = Field(default=0, ge=0)
    seller: str = Field(min_length=1)
    delivery_estimate: str = ""
    return_policy: str = ""
    warranty: str = ""
    offer_text: str = ""
    availability: Availability = Availability.IN_STOCK
    product_link: str = ""
    last_updated: datetime = Field(default_factory=datetime.utcnow)
    product_id: Optional[int] = None
    # Row id once persisted
    listing_id: Optional[int] = None
    # Which strategy produced the record (gemini, http, browser, synthetic)
    source: str = ""

    @field_validator("availability", mode="before")
    @classmethod
    def _coerce_availability(cls, value):
        parsed = Availability.parse(value)
        return parsed if parsed is not None else Availability.IN_STOCK

    @property
    def is_priced(self) -> bool:
        return self.price > 0
