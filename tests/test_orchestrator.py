import random

import pytest

from config.settings import Settings
from core.exceptions import NoListingsError
from core.pipeline.orchestrator import Orchestrator
from core.providers.base import ListingProvider
from core.synthesis.synthesizer import Synthesizer


class FakeProvider(ListingProvider):
    def __init__(self, name, listings=None, error=None, calls=None):
        self.name = name
        super().__init__()
        self.listings = listings
        self.error = error
        self.calls = calls if calls is not None else []

    def try_fetch(self, product_name, platforms, product_id=None):
        self.calls.append((self.name, product_name, list(platforms)))
        if self.error:
            raise self.error
        return self.listings


def test_first_successful_strategy_wins(make_listing):
    calls = []
    chain = [
        FakeProvider("gemini", None, calls=calls),
        FakeProvider("scrape", [make_listing("Flipkart", 900)], calls=calls),
        FakeProvider("synthetic", [make_listing("Amazon", 1000)], calls=calls),
    ]
    listings = Orchestrator(chain).fetch_all("iPhone 15")

    assert [x.platform for x in listings] == ["Flipkart"]
    assert [c[0] for c in calls] == ["gemini", "scrape"]
    # Every strategy is asked for the product's relevant platforms
    assert calls[0][2] == ["Amazon", "Flipkart", "Tata CLiQ", "Shopify", "Snapdeal", "Meesho"]


def test_raising_strategy_is_skipped(make_listing):
    chain = [
        FakeProvider("gemini", error=RuntimeError("boom")),
        FakeProvider("synthetic", [make_listing("Amazon", 1000)]),
    ]
    assert Orchestrator(chain).fetch_all("iPhone 15")[0].platform == "Amazon"


def test_unpriced_listings_never_leave_the_pipeline(make_listing):
    chain = [
        FakeProvider("scrape", [make_listing("Amazon", 0), make_listing("Flipkart", -5)]),
        FakeProvider("synthetic", [make_listing("Meesho", 700), make_listing("Amazon", 0)]),
    ]
    listings = Orchestrator(chain).fetch_all("iPhone 15")
    assert [x.platform for x in listings] == ["Meesho"]


def test_product_id_is_attached(make_listing):
    chain = [FakeProvider("synthetic", [make_listing("Amazon", 1000)])]
    listings = Orchestrator(chain).fetch_all("iPhone 15", product_id=12)
    assert listings[0].product_id == 12


def test_all_strategies_failing_raises():
    chain = [FakeProvider("gemini", None), FakeProvider("scrape", [])]
    with pytest.raises(NoListingsError) as excinfo:
        Orchestrator(chain).fetch_all("iPhone 15")
    assert excinfo.value.product_name == "iPhone 15"
    assert "retry" in str(excinfo.value)


def test_fetch_one_uses_single_platform_chain(make_listing):
    calls = []
    all_chain = [FakeProvider("gemini", [make_listing("Amazon", 1)], calls=calls)]
    single_chain = [
        FakeProvider("scrape", None, calls=calls),
        FakeProvider("synthetic", [make_listing("Flipkart", 50), make_listing("Amazon", 60)], calls=calls),
    ]
    listing = Orchestrator(all_chain, single_chain).fetch_one("amazon", "iPhone 15", product_id=3)

    assert listing.platform == "Amazon"
    assert listing.price == 60
    assert listing.product_id == 3
    assert [c[0] for c in calls] == ["scrape", "synthetic"]
    assert calls[0][2] == ["Amazon"]


def test_fetch_one_returns_none_when_everything_fails():
    assert Orchestrator([FakeProvider("scrape", None)]).fetch_one("Amazon", "iPhone 15") is None


def test_from_settings_builds_both_orders():
    settings = Settings(DATABASE_URL="sqlite://", GEMINI_API_KEY="", SCRAPE_ENGINES="http,browser")
    orchestrator = Orchestrator.from_settings(settings)

    assert [p.name for p in orchestrator.chain] == ["gemini", "scrape", "synthetic"]
    assert [p.name for p in orchestrator.single_chain] == ["scrape", "gemini", "synthetic"]
    scrape = orchestrator.chain[1]
    assert [e.name for e in scrape.engines] == ["http", "browser"]


def test_from_settings_drops_disabled_strategies():
    settings = Settings(DATABASE_URL="sqlite://", USE_GEMINI=False, SCRAPE_ENGINES="",
                        USE_SYNTHETIC_FALLBACK=True)
    orchestrator = Orchestrator.from_settings(settings, rng=random.Random(1))

    assert [p.name for p in orchestrator.chain] == ["synthetic"]
    listings = orchestrator.fetch_all("iPhone 15")
    assert len(listings) == 6
    assert all(x.price > 0 for x in listings)


def test_missing_ai_key_falls_through_to_synthesis():
    settings = Settings(DATABASE_URL="sqlite://", GEMINI_API_KEY="", USE_GEMINI=True,
                        SCRAPE_ENGINES="", USE_SYNTHETIC_FALLBACK=True)
    orchestrator = Orchestrator.from_settings(settings, rng=random.Random(1))

    assert [p.name for p in orchestrator.chain] == ["gemini", "synthetic"]
    listings = orchestrator.fetch_all("iPhone 15")
    assert listings
    assert all(x.source == "synthetic" for x in listings)


def test_unseeded_synthesis_uses_a_generator_per_call(monkeypatch):
    settings = Settings(DATABASE_URL="sqlite://", USE_GEMINI=False, SCRAPE_ENGINES="",
                        USE_SYNTHETIC_FALLBACK=True)
    orchestrator = Orchestrator.from_settings(settings)
    synthetic = orchestrator.chain[0]
    assert synthetic.synthesizer is None

    built = []
    original_init = Synthesizer.__init__

    def recording_init(self, rng=None):
        original_init(self, rng)
        built.append(self.rng)

    monkeypatch.setattr(Synthesizer, "__init__", recording_init)
    orchestrator.fetch_all("iPhone 15")
    orchestrator.fetch_all("iPhone 15")

    assert len(built) == 2
    assert built[0] is not built[1]
