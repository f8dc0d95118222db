import logging
import re
from typing import Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from core.listing import Availability, PlatformListing
from core import platforms as catalog

logger = logging.getLogger("scraper.pages")

_NUMBER = re.compile(r"\d+(?:\.\d+)?")


def extract_price(price_text: Optional[str]) -> float:
    """Extract a numerical price from text such as "₹79,900" or "Rs. 1,299.00".

    Returns 0.0 (meaning "missing") when no number can be read.
    """
    if not price_text:
        return 0.0
    clean_price = price_text.replace(",", "")
    match = _NUMBER.search(clean_price)
    if not match:
        logger.warning("Could not parse price: %s", price_text)
        return 0.0
    return float(match.group(0))


def extract_rating(rating_text: Optional[str]) -> float:
    """First number in text like "4.3 out of 5 stars", clamped to 0-5."""
    if not rating_text:
        return 0.0
    match = _NUMBER.search(rating_text)
    if not match:
        return 0.0
    return max(0.0, min(5.0, float(match.group(0))))


def extract_count(count_text: Optional[str]) -> int:
    """First integer in text like "12,345 Ratings & 1,020 Reviews"."""
    if not count_text:
        return 0
    match = re.search(r"\d+", count_text.replace(",", ""))
    return int(match.group(0)) if match else 0


class SearchPage:
    """Selectors and static terms for one platform's search-results page.

    Subclasses fill in the class attributes; parsing is shared. Each selector
    attribute is a list tried in order because marketplaces rename their
    CSS classes frequently.
    """

    platform: str = ""
    base_url: str = ""
    result_selectors: Sequence[str] = ()
    price_selectors: Sequence[str] = ()
    rating_selectors: Sequence[str] = ()
    review_selectors: Sequence[str] = ()
    seller_selectors: Sequence[str] = ()
    link_selectors: Sequence[str] = ("a[href]",)
    default_seller: str = ""
    delivery_estimate: str = "Check website"
    return_policy: str = ""
    blocked_markers: Sequence[str] = ("captcha", "robot check", "not a robot")

    def search_url(self, product_name: str) -> str:
        return catalog.search_url(self.platform, product_name)

    def is_blocked(self, soup: BeautifulSoup) -> bool:
        text = soup.get_text(" ", strip=True).lower()[:5000]
        return any(marker in text for marker in self.blocked_markers)

    def first_result(self, soup: BeautifulSoup) -> Optional[Tag]:
        for selector in self.result_selectors:
            results = soup.select(selector)
            if results:
                return results[0]
        return None

    def parse(self, soup: BeautifulSoup, url: str, product_id: Optional[int] = None,
              source: str = "") -> Optional[PlatformListing]:
        """Build a listing from the first search result, None if there is none."""
        if self.is_blocked(soup):
            logger.warning("Detected CAPTCHA or robot check page on %s", self.platform)
            return None

        result = self.first_result(soup)
        if result is None:
            logger.info("No products found for %s. Possible blocking.", self.platform)
            return None

        price = extract_price(self._text(result, self.price_selectors))
        if price <= 0:
            logger.info("Could not find price on %s", self.platform)
            return None

        seller = self._text(result, self.seller_selectors) or self.default_seller or f"{self.platform} Seller"
        return PlatformListing(
            platform=self.platform,
            price=price,
            rating=extract_rating(self._text(result, self.rating_selectors)),
            review_count=extract_count(self._text(result, self.review_selectors)),
            seller=seller,
            delivery_estimate=self.delivery_estimate,
            return_policy=self.return_policy,
            availability=self._availability(result),
            product_link=self._link(result) or url,
            product_id=product_id,
            source=source,
        )

    def _text(self, node: Tag, selectors: Sequence[str]) -> str:
        for selector in selectors:
            element = node.select_one(selector)
            if element is not None:
                text = element.get_text(" ", strip=True)
                if text:
                    return text
        return ""

    def _link(self, node: Tag) -> Optional[str]:
        for selector in self.link_selectors:
            anchor = node.select_one(selector)
            if anchor is not None and anchor.get("href"):
                return urljoin(self.base_url, anchor["href"])
        return None

    def _availability(self, node: Tag) -> Availability:
        text = node.get_text(" ", strip=True).lower()
        if "currently unavailable" in text or "out of stock" in text or "sold out" in text:
            return Availability.OUT_OF_STOCK
        if re.search(r"only \d+ left", text):
            return Availability.LIMITED_STOCK
        return Availability.IN_STOCK
