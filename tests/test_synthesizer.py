import random

from core import platforms as catalog
from core.listing import Availability
from core.synthesis.synthesizer import Synthesizer


def _fingerprint(listings):
    return [
        (x.platform, x.price, x.rating, x.review_count, x.seller, x.offer_text, x.availability)
        for x in listings
    ]


def test_iphone_15_prices_stay_in_platform_bands():
    platforms = catalog.relevant_platforms("iPhone 15")
    for seed in range(50):
        listings = Synthesizer(random.Random(seed)).synthesize("iPhone 15", platforms)
        by_platform = {x.platform: x for x in listings}
        assert 75905 <= by_platform["Amazon"].price <= 87890
        assert 59925 <= by_platform["Meesho"].price <= 71910


def test_one_listing_per_platform_sorted_by_price():
    platforms = catalog.relevant_platforms("iPhone 15")
    listings = Synthesizer(random.Random(1)).synthesize("iPhone 15", platforms, product_id=9)

    assert sorted(x.platform for x in listings) == sorted(platforms)
    prices = [x.price for x in listings]
    assert prices == sorted(prices)
    assert all(x.product_id == 9 for x in listings)
    assert all(x.source == "synthetic" for x in listings)
    assert all(x.price > 0 for x in listings)


def test_same_seed_gives_same_listings():
    platforms = catalog.relevant_platforms("Nike running shoe")
    first = Synthesizer(random.Random(42)).synthesize("Nike running shoe", platforms)
    second = Synthesizer(random.Random(42)).synthesize("Nike running shoe", platforms)
    assert _fingerprint(first) == _fingerprint(second)


def test_ratings_and_reviews_follow_platform_ranges():
    synth = Synthesizer(random.Random(3))
    for _ in range(200):
        assert 4.0 <= synth.rating_for("Amazon") <= 4.8
        assert 3.5 <= synth.rating_for("Meesho") <= 4.7
        assert 1000 <= synth.review_count_for("Amazon") < 11000


def test_availability_split_is_mostly_in_stock():
    synth = Synthesizer(random.Random(11))
    draws = [synth.availability() for _ in range(4000)]
    in_stock = draws.count(Availability.IN_STOCK) / len(draws)
    out_of_stock = draws.count(Availability.OUT_OF_STOCK) / len(draws)
    assert 0.70 <= in_stock <= 0.80
    assert 0.02 <= out_of_stock <= 0.08


def test_short_keywords_match_whole_words_only():
    synth = Synthesizer(random.Random(5))
    # "tv" must not match inside "activewear"; generic range is 1,000 to 10,000
    for _ in range(20):
        assert 1000 <= synth.estimate_base_price("activewear jacket") <= 10000
    assert 25000 <= synth.estimate_base_price("Sony TV 55 inch") <= 100000


def test_anchored_models_use_fixed_base_price():
    synth = Synthesizer(random.Random(0))
    assert synth.estimate_base_price("Apple iPhone 15 Pro 256GB") == 134900
    assert synth.estimate_base_price("iphone 15") == 79900


def test_unknown_platform_gets_generic_values():
    listings = Synthesizer(random.Random(2)).synthesize("Widget", ["Bazaar"])
    assert len(listings) == 1
    assert listings[0].platform == "Bazaar"
    assert listings[0].seller == "Bazaar Official"
    assert listings[0].price > 0


def test_warranty_depends_on_product_kind():
    assert Synthesizer.warranty_for("Samsung Galaxy phone") != Synthesizer.warranty_for("Cotton shirt")
