# Deterministic-given-seed generator of plausible listings.
# Used as the terminal fallback of the acquisition chain and as a mock data
# source for demos and tests. It performs no I/O.

import logging
import random
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from core.listing import Availability, PlatformListing
from core import platforms as catalog

logger = logging.getLogger("synthesis")

# Exact model anchors, checked before the category ranges. Longer names come
# first so "iphone 15 pro" is not swallowed by "iphone 15".
PRICE_ANCHORS: List[Tuple[str, float]] = [
    ("iphone 16", 89900),
    ("iphone 15 pro", 134900),
    ("iphone 15", 79900),
    ("iphone 14", 69900),
    ("iphone 13", 59900),
    ("samsung s24 ultra", 124999),
    ("samsung s24", 74999),
    ("samsung s23", 64999),
    ("oneplus 12", 64999),
    ("oneplus 11", 56999),
    ("pixel 8", 75999),
]

# (keywords, low, high): base price drawn uniformly from [low, high)
CATEGORY_PRICE_RANGES: List[Tuple[Tuple[str, ...], float, float]] = [
    # Electronics
    (("laptop",), 50000, 100000),
    (("macbook",), 95000, 195000),
    (("airpods",), 12000, 24000),
    (("watch", "smartwatch"), 5000, 25000),
    (("tv", "television"), 25000, 100000),
    (("tablet", "ipad"), 25000, 100000),
    # Fashion
    (("nike", "adidas"), 3000, 10000),
    (("shoe", "sneaker"), 2000, 10000),
    (("shirt", "tshirt"), 400, 2000),
    (("jeans", "pants"), 800, 3000),
    (("dress",), 1000, 5000),
    (("saree",), 1500, 10000),
    # Beauty
    (("lipstick",), 300, 2000),
    (("perfume",), 1500, 10000),
    (("skincare",), 500, 3000),
    # Baby
    (("diaper",), 800, 2000),
    (("baby",), 500, 5000),
]
GENERIC_PRICE_RANGE = (1000.0, 10000.0)

# (low, high) multiplier applied to the base price per platform
PRICE_MULTIPLIERS: Dict[str, Tuple[float, float]] = {
    catalog.MEESHO: (0.75, 0.85),
    catalog.SNAPDEAL: (0.82, 0.94),
    catalog.AMAZON: (0.95, 1.05),
    catalog.FLIPKART: (0.93, 1.05),
    catalog.MYNTRA: (0.97, 1.05),
    catalog.TATA_CLIQ: (0.98, 1.05),
    catalog.NYKAA: (0.96, 1.05),
    catalog.AJIO: (0.94, 1.05),
    catalog.FIRSTCRY: (0.92, 1.05),
    catalog.SHOPIFY: (0.90, 1.05),
}
DEFAULT_MULTIPLIER = (0.95, 1.05)

RATING_RANGES: Dict[str, Tuple[float, float]] = {
    catalog.AMAZON: (4.0, 4.8),
    catalog.FLIPKART: (4.0, 4.8),
    catalog.MYNTRA: (3.8, 4.8),
    catalog.TATA_CLIQ: (3.8, 4.8),
    catalog.NYKAA: (3.8, 4.8),
    catalog.MEESHO: (3.5, 4.7),
    catalog.SNAPDEAL: (3.5, 4.7),
}
DEFAULT_RATING_RANGE = (3.7, 4.7)

# (minimum, spread): count drawn from [minimum, minimum + spread)
REVIEW_COUNT_RANGES: Dict[str, Tuple[int, int]] = {
    catalog.AMAZON: (1000, 10000),
    catalog.FLIPKART: (500, 8000),
    catalog.MYNTRA: (200, 3000),
    catalog.MEESHO: (100, 2000),
    catalog.NYKAA: (150, 2500),
}
DEFAULT_REVIEW_COUNT_RANGE = (50, 1500)

SELLERS: Dict[str, Sequence[str]] = {
    catalog.AMAZON: ("Amazon Retail", "Cloudtail India"),
    catalog.FLIPKART: ("Flipkart Assured",),
    catalog.MYNTRA: ("Myntra Fashion Store",),
    catalog.MEESHO: ("Meesho Supplier",),
    catalog.AJIO: ("AJIO Retail",),
    catalog.NYKAA: ("Nykaa Fashion",),
    catalog.TATA_CLIQ: ("Tata CLiQ",),
    catalog.FIRSTCRY: ("FirstCry Store",),
    catalog.SNAPDEAL: ("Snapdeal Seller",),
    catalog.SHOPIFY: ("Brand Official Store",),
}

DELIVERY_TIMES: Dict[str, str] = {
    catalog.AMAZON: "1-2 days",
    catalog.FLIPKART: "2-3 days",
    catalog.MYNTRA: "3-4 days",
    catalog.MEESHO: "3-5 days",
    catalog.AJIO: "3-5 days",
    catalog.SNAPDEAL: "4-6 days",
    catalog.NYKAA: "2-4 days",
    catalog.TATA_CLIQ: "3-5 days",
    catalog.FIRSTCRY: "2-4 days",
    catalog.SHOPIFY: "4-7 days",
}
DEFAULT_DELIVERY_TIME = "3-5 days"

RETURN_POLICIES: Dict[str, str] = {
    catalog.AMAZON: "30 days return & refund",
    catalog.FLIPKART: "10 days return policy",
    catalog.SNAPDEAL: "10 days return policy",
    catalog.MYNTRA: "30 days easy return",
    catalog.TATA_CLIQ: "30 days easy return",
    catalog.NYKAA: "15 days return for sealed products",
    catalog.MEESHO: "7 days return available",
    catalog.FIRSTCRY: "15 days easy return",
}
DEFAULT_RETURN_POLICY = "14 days return policy"

# (keywords, warranty text), first match wins
WARRANTIES: List[Tuple[Tuple[str, ...], str]] = [
    (("iphone", "samsung", "oneplus", "pixel", "phone", "laptop", "macbook", "ipad", "tablet", "airpods"),
     "1 year manufacturer warranty"),
    (("watch", "tv", "television"), "1 year warranty + 1 year extended"),
    (("shirt", "shoe", "dress", "jeans", "saree", "kurta", "sneaker", "sandal", "clothing"),
     "No warranty (fashion item)"),
    (("lipstick", "cream", "makeup", "skincare", "perfume", "cosmetic", "beauty"),
     "Authentic product guarantee"),
]
DEFAULT_WARRANTY = "6 months warranty"

OFFERS: Tuple[str, ...] = (
    "Diwali Sale: Extra 10% off",
    "Festive Offer: Flat 15% discount",
    "Diwali Special: Buy 1 Get 1 Free",
    "Festival Deal: Up to 20% off",
    "Bank Offer: 10% instant discount",
    "Diwali Bonanza: No Cost EMI",
    "Festive Savings: Cashback ₹500",
    "Diwali Dhamaka: Extra 12% off",
    "Limited Time: Flat ₹1000 off",
    "Festival Special: 5% cashback",
)

# Cumulative percent thresholds for the 75/20/5 availability split
AVAILABILITY_WEIGHTS: Tuple[Tuple[int, Availability], ...] = (
    (75, Availability.IN_STOCK),
    (95, Availability.LIMITED_STOCK),
    (100, Availability.OUT_OF_STOCK),
)


class Synthesizer:
    """Generates plausible per-platform listings for a product name.

    All randomness comes from ``rng``. Pass ``random.Random(seed)`` for
    reproducible output; each call path should own its instance since
    ``random.Random`` is not shared safely across threads.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def synthesize(self, product_name: str, platforms: Sequence[str],
                   product_id: Optional[int] = None) -> List[PlatformListing]:
        """Return one listing per requested platform, cheapest first."""
        name = product_name or ""
        base_price = self.estimate_base_price(name)
        warranty = self.warranty_for(name)
        now = datetime.utcnow()

        listings = []
        for platform in platforms:
            if not platform:
                continue
            try:
                listing = self._listing_for(name, platform, base_price, warranty, product_id, now)
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.warning("Synthesis anomaly for %s (%s), using generic values", platform, e)
                listing = self._generic_listing(name, platform, product_id, now)
            listings.append(listing)

        listings.sort(key=lambda listing: listing.price)
        return listings

    def estimate_base_price(self, product_name: str) -> float:
        lower = product_name.lower()
        try:
            for keyword, anchor in PRICE_ANCHORS:
                if keyword in lower:
                    return float(anchor)
            for keywords, low, high in CATEGORY_PRICE_RANGES:
                if any(self._has_keyword(lower, keyword) for keyword in keywords):
                    return self.rng.uniform(low, high)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning("Base price estimation failed for '%s': %s", product_name, e)
        return self.rng.uniform(*GENERIC_PRICE_RANGE)

    def platform_price(self, base_price: float, platform: str) -> float:
        low, high = PRICE_MULTIPLIERS.get(platform, DEFAULT_MULTIPLIER)
        return round(base_price * self.rng.uniform(low, high), 2)

    def rating_for(self, platform: str) -> float:
        low, high = RATING_RANGES.get(platform, DEFAULT_RATING_RANGE)
        return round(self.rng.uniform(low, high), 1)

    def review_count_for(self, platform: str) -> int:
        minimum, spread = REVIEW_COUNT_RANGES.get(platform, DEFAULT_REVIEW_COUNT_RANGE)
        return minimum + self.rng.randrange(spread)

    def seller_for(self, platform: str) -> str:
        sellers = SELLERS.get(platform)
        if not sellers:
            return f"{platform} Official"
        return sellers[0] if len(sellers) == 1 else self.rng.choice(sellers)

    @staticmethod
    def warranty_for(product_name: str) -> str:
        lower = product_name.lower()
        for keywords, warranty in WARRANTIES:
            if any(Synthesizer._has_keyword(lower, keyword) for keyword in keywords):
                return warranty
        return DEFAULT_WARRANTY

    def availability(self) -> Availability:
        roll = self.rng.randrange(100)
        for threshold, availability in AVAILABILITY_WEIGHTS:
            if roll < threshold:
                return availability
        return Availability.IN_STOCK

    def offer(self) -> str:
        return self.rng.choice(OFFERS)

    def _listing_for(self, product_name, platform, base_price, warranty, product_id, now):
        return PlatformListing(
            platform=platform,
            price=self.platform_price(base_price, platform),
            rating=self.rating_for(platform),
            review_count=self.review_count_for(platform),
            seller=self.seller_for(platform),
            delivery_estimate=DELIVERY_TIMES.get(platform, DEFAULT_DELIVERY_TIME),
            return_policy=RETURN_POLICIES.get(platform, DEFAULT_RETURN_POLICY),
            warranty=warranty,
            offer_text=self.offer(),
            availability=self.availability(),
            product_link=catalog.search_url(platform, product_name),
            last_updated=now,
            product_id=product_id,
            source="synthetic",
        )

    def _generic_listing(self, product_name, platform, product_id, now):
        base_price = self.rng.uniform(*GENERIC_PRICE_RANGE)
        low, high = DEFAULT_MULTIPLIER
        return PlatformListing(
            platform=str(platform),
            price=round(base_price * self.rng.uniform(low, high), 2),
            rating=round(self.rng.uniform(*DEFAULT_RATING_RANGE), 1),
            review_count=DEFAULT_REVIEW_COUNT_RANGE[0],
            seller=f"{platform} Official",
            delivery_estimate=DEFAULT_DELIVERY_TIME,
            return_policy=DEFAULT_RETURN_POLICY,
            warranty=DEFAULT_WARRANTY,
            offer_text="",
            availability=Availability.IN_STOCK,
            product_link=catalog.FALLBACK_SEARCH_URL.format(query=str(product_name).replace(" ", "+")),
            last_updated=now,
            product_id=product_id,
            source="synthetic",
        )

    @staticmethod
    def _has_keyword(lower_name: str, keyword: str) -> bool:
        # Short keywords like "tv" only match whole words
        if len(keyword) <= 3:
            return keyword in lower_name.replace("-", " ").split()
        return keyword in lower_name
