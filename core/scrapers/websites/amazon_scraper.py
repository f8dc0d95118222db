from core.scrapers.search_page import SearchPage
from core import platforms as catalog


class AmazonSearchPage(SearchPage):
    """Amazon India search results.

    Amazon blocks plain HTTP clients more aggressively than Flipkart, so the
    fast engine often gets a robot-check page here and the browser engine
    has to take over.
    """

    platform = catalog.AMAZON
    base_url = "https://www.amazon.in"
    result_selectors = ("div[data-component-type='s-search-result']",)
    price_selectors = (
        "span.a-price-whole",
        ".a-price .a-offscreen",
        "span.a-price",
    )
    rating_selectors = ("span.a-icon-alt",)
    review_selectors = (
        "span.a-size-base.s-underline-text",
        "a[href*='customerReviews'] span",
    )
    link_selectors = ("h2 a[href]", "a.a-link-normal[href]")
    default_seller = "Amazon"
    delivery_estimate = "2-3 days"
    return_policy = "30 days return"
