from core.scrapers.search_page import SearchPage
from core import platforms as catalog


class FlipkartSearchPage(SearchPage):
    """Flipkart search results. Flipkart changes its class names often."""

    platform = catalog.FLIPKART
    base_url = "https://www.flipkart.com"
    result_selectors = ("div[data-id]", "div._1AtVbE", "div.cPHDOP")
    price_selectors = ("div._30jeq3", "div._3I9_wc", "div.Nx9bqj")
    rating_selectors = ("div._3LWZlK", "div.XQDdHH")
    review_selectors = ("span._2_R_DZ", "span.Wphh3N")
    seller_selectors = ("div._2WkVRV",)
    link_selectors = ("a[href]",)
    default_seller = "Flipkart Seller"
    return_policy = "10 days return policy"
