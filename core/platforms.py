# Catalog of supported marketplaces and the keyword rules that decide which
# of them are worth asking about for a given product name.

from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote_plus, urlparse

AMAZON = "Amazon"
FLIPKART = "Flipkart"
MYNTRA = "Myntra"
MEESHO = "Meesho"
AJIO = "Ajio"
SNAPDEAL = "Snapdeal"
NYKAA = "Nykaa"
TATA_CLIQ = "Tata CLiQ"
FIRSTCRY = "FirstCry"
SHOPIFY = "Shopify"

ALL_PLATFORMS: Tuple[str, ...] = (
    AMAZON, FLIPKART, MYNTRA, MEESHO, AJIO, SNAPDEAL, NYKAA, TATA_CLIQ, FIRSTCRY, SHOPIFY,
)

# Platforms the page scrapers know how to read, in the order they are tried
SCRAPE_PLATFORMS: Tuple[str, ...] = (FLIPKART, AMAZON)

BEAUTY = "beauty"
BABY = "baby"
FASHION = "fashion"
FOOTWEAR = "footwear"
ELECTRONICS = "electronics"

# Checked top to bottom; the first category with a matching keyword wins.
CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    (BEAUTY, ("lipstick", "makeup", "skincare", "cosmetic", "beauty", "nail polish")),
    (BABY, ("baby", "diaper", "kids", "toy", "infant", "newborn")),
    (FASHION, ("shirt", "dress", "jeans", "shoe", "saree", "kurta", "t-shirt", "clothing")),
    (FOOTWEAR, ("sneaker", "sandal", "boot", "footwear")),
]

CATEGORY_PLATFORMS: Dict[str, Tuple[str, ...]] = {
    BEAUTY: (AMAZON, FLIPKART, MYNTRA, NYKAA, TATA_CLIQ, MEESHO),
    BABY: (AMAZON, FLIPKART, FIRSTCRY, MEESHO, SHOPIFY),
    FASHION: (AMAZON, FLIPKART, MYNTRA, AJIO, MEESHO, TATA_CLIQ),
    FOOTWEAR: (AMAZON, FLIPKART, MYNTRA, AJIO, MEESHO),
    ELECTRONICS: (AMAZON, FLIPKART, TATA_CLIQ, SHOPIFY, SNAPDEAL, MEESHO),
}

SEARCH_URL_TEMPLATES: Dict[str, str] = {
    AMAZON: "https://www.amazon.in/s?k={query}",
    FLIPKART: "https://www.flipkart.com/search?q={query}",
    MYNTRA: "https://www.myntra.com/{query}",
    MEESHO: "https://www.meesho.com/search?q={query}",
    AJIO: "https://www.ajio.com/search?query={query}",
    SNAPDEAL: "https://www.snapdeal.com/search?keyword={query}",
    NYKAA: "https://www.nykaa.com/search/result/?q={query}",
    TATA_CLIQ: "https://www.tatacliq.com/search/?searchCategory=all&text={query}",
    FIRSTCRY: "https://www.firstcry.com/search?q={query}",
    SHOPIFY: "https://shop.app/search?query={query}",
}
FALLBACK_SEARCH_URL = "https://www.google.com/search?q={query}"

# URL fragments identifying a platform, checked in order
URL_MARKERS: List[Tuple[str, str]] = [
    ("amazon", AMAZON),
    ("flipkart", FLIPKART),
    ("myntra", MYNTRA),
    ("meesho", MEESHO),
    ("ajio", AJIO),
    ("snapdeal", SNAPDEAL),
    ("nykaa", NYKAA),
    ("tatacliq", TATA_CLIQ),
    ("firstcry", FIRSTCRY),
    ("shop.app", SHOPIFY),
    ("shopify", SHOPIFY),
]

_CANONICAL = {name.lower().replace(" ", ""): name for name in ALL_PLATFORMS}


def classify(product_name: str) -> str:
    """Return the category of a product name, electronics when nothing matches."""
    lower = (product_name or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return category
    return ELECTRONICS


def relevant_platforms(product_name: str) -> List[str]:
    """Ordered platforms that plausibly sell this kind of product."""
    return list(CATEGORY_PLATFORMS[classify(product_name)])


def canonical_platform(name: Optional[str]) -> Optional[str]:
    """Map a loosely written platform name ("tata cliq", "FLIPKART") to its catalog spelling."""
    if not name:
        return None
    key = name.strip().lower().replace(" ", "").replace("-", "").replace("_", "")
    if key in ("tatacliq", "cliq"):
        return TATA_CLIQ
    return _CANONICAL.get(key)


def search_url(platform: str, product_name: str) -> str:
    """Search-results URL for a product on a platform."""
    canonical = canonical_platform(platform)
    template = SEARCH_URL_TEMPLATES.get(canonical, FALLBACK_SEARCH_URL)
    return template.format(query=quote_plus(product_name.strip().lower()))


def platform_from_url(url: Optional[str]) -> Optional[str]:
    """Identify the platform a product URL belongs to, None for generic URLs.

    Only the host is matched, so a product name in the path (as in
    ``https://search/amazon+echo+dot``) never selects a platform.
    """
    host = (urlparse(url or "").hostname or "").lower()
    for marker, platform in URL_MARKERS:
        if marker in host:
            return platform
    return None


def search_source_url(product_name: str) -> str:
    """Identity URL given to products that were added by name rather than by link."""
    return "https://search/" + product_name.strip().lower().replace(" ", "+")


def with_platform(platforms: Sequence[str], platform: str) -> List[str]:
    """Platforms plus ``platform`` appended when not already present (case-insensitive)."""
    result = list(platforms)
    if platform.lower() not in (p.lower() for p in result):
        result.append(platform)
    return result
