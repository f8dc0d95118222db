from dataclasses import dataclass
from typing import List, Optional, Sequence

from core.listing import Availability, PlatformListing

BEST_OVERALL = "Buy from {platform}: best price and top rated."
CONSIDER_RATED = "Consider the better-rated option on {platform} for slightly more."
GO_CHEAPEST = "Go with {platform} if price is your priority."


@dataclass
class Recommendation:
    best_price: PlatformListing
    best_rated: PlatformListing
    price_gap: float
    gap_percent: float
    advice: str

    @property
    def same_platform(self) -> bool:
        return self.best_price.platform == self.best_rated.platform


class Recommender:
    """Picks where to buy from a set of platform listings."""

    def __init__(self, max_gap_percent=10.0):
        self.max_gap_percent = max_gap_percent

    def recommend(self, listings: Sequence[PlatformListing]) -> Optional[Recommendation]:
        """Compare the cheapest listing with the best rated one.

        Returns None when there is no priced listing.
        """
        candidates = self.candidates(listings)
        if not candidates:
            return None

        # Find cheapest and best rated; ties go to the cheaper listing
        cheapest = min(candidates, key=lambda x: x.price)
        best_rated = max(candidates, key=lambda x: (x.rating, -x.price))

        # Calculate the premium for the better rating
        price_gap = best_rated.price - cheapest.price
        gap_percent = (price_gap / cheapest.price) * 100

        if best_rated.platform == cheapest.platform:
            advice = BEST_OVERALL.format(platform=cheapest.platform)
        elif gap_percent < self.max_gap_percent:
            advice = CONSIDER_RATED.format(platform=best_rated.platform)
        else:
            advice = GO_CHEAPEST.format(platform=cheapest.platform)

        return Recommendation(
            best_price=cheapest,
            best_rated=best_rated,
            price_gap=round(price_gap, 2),
            gap_percent=round(gap_percent, 2),
            advice=advice,
        )

    @staticmethod
    def candidates(listings: Sequence[PlatformListing]) -> List[PlatformListing]:
        priced = [listing for listing in listings if listing.is_priced]
        in_stock = [listing for listing in priced if listing.availability != Availability.OUT_OF_STOCK]
        return in_stock or priced
