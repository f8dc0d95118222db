# Strict deserialization of the model's JSON payload.
# Each entry is validated on its own and turned into an EntryResult, so one
# bad entry never sinks the batch and nothing raises past parse_entries().

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.listing import Availability, PlatformListing
from core import platforms as catalog
from core.scrapers.search_page import extract_count


def _clean_number(value):
    # "₹79,900" and "79,900.00" are numbers too; anything else is left for
    # pydantic to reject
    if isinstance(value, str):
        cleaned = value.replace(",", "").replace("₹", "").replace("Rs.", "").replace("INR", "").strip()
        return cleaned or value
    return value


class PlatformEntry(BaseModel):
    """One element of the ``platforms`` array as the model writes it."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    platform: str
    price: float
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    review_count: int = Field(default=0, ge=0, alias="reviewCount")
    seller: str = ""
    delivery_time: str = Field(default="", alias="deliveryTime")
    return_policy: str = Field(default="", alias="returnPolicy")
    warranty: str = ""
    offers: str = ""
    availability: str = ""

    @field_validator("platform")
    @classmethod
    def _known_platform(cls, value: str) -> str:
        canonical = catalog.canonical_platform(value)
        if canonical is None:
            raise ValueError(f"unrecognised platform name {value!r}")
        return canonical

    @field_validator("price", "rating", mode="before")
    @classmethod
    def _numeric(cls, value):
        return _clean_number(value)

    @field_validator("review_count", mode="before")
    @classmethod
    def _count(cls, value):
        if isinstance(value, str):
            if not any(ch.isdigit() for ch in value):
                return value
            return extract_count(value)
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    @field_validator("seller", "delivery_time", "return_policy", "warranty", "offers",
                     "availability", mode="before")
    @classmethod
    def _text(cls, value):
        return "" if value is None else str(value).strip()

    def to_listing(self, product_name: str, product_id: Optional[int] = None) -> PlatformListing:
        return PlatformListing(
            platform=self.platform,
            price=round(self.price, 2),
            rating=round(self.rating, 1),
            review_count=self.review_count,
            seller=self.seller or f"{self.platform} Official",
            delivery_estimate=self.delivery_time,
            return_policy=self.return_policy,
            warranty=self.warranty,
            offer_text=self.offers,
            availability=Availability.parse(self.availability) or Availability.IN_STOCK,
            product_link=catalog.search_url(self.platform, product_name),
            product_id=product_id,
            source="gemini",
        )


@dataclass
class EntryResult:
    """Outcome of validating one payload entry: a listing or the reason it was dropped."""

    index: int
    listing: Optional[PlatformListing] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.listing is not None


def parse_entries(entries: Sequence[Any], product_name: str,
                  product_id: Optional[int] = None) -> List[EntryResult]:
    """Validate every entry of the ``platforms`` array independently.

    Duplicate platforms keep their first valid entry; later ones are reported
    as errors.
    """
    results = []
    seen = set()
    for index, raw in enumerate(entries):
        if not isinstance(raw, dict):
            results.append(EntryResult(index, error="entry is not an object"))
            continue
        try:
            entry = PlatformEntry.model_validate(raw)
            listing = entry.to_listing(product_name, product_id)
        except ValidationError as e:
            results.append(EntryResult(index, error=_describe(e)))
            continue
        if not listing.is_priced:
            results.append(EntryResult(index, error=f"non-positive price {listing.price}"))
            continue
        if listing.platform in seen:
            results.append(EntryResult(index, error=f"duplicate platform {listing.platform}"))
            continue
        seen.add(listing.platform)
        results.append(EntryResult(index, listing=listing))
    return results


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
