import random

import pytest

from config.settings import Settings
from core.database.gateway import PersistenceGateway
from core.listing import Availability, PlatformListing
from core.pipeline.orchestrator import Orchestrator
from core.pipeline.product_service import ProductService
from core.providers.synthetic_provider import SyntheticProvider
from core.synthesis.synthesizer import Synthesizer


@pytest.fixture
def settings(tmp_path):
    """Offline settings: SQLite file database, no AI, no scraping, no delays."""
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'prices.db'}",
        GEMINI_API_KEY="",
        USE_GEMINI=False,
        SCRAPE_ENGINES="",
        AI_RETRY_DELAY_SECONDS=0,
        REFRESH_PRODUCT_DELAY_SECONDS=0,
        REFRESH_STOP_GRACE_SECONDS=2,
        AUTO_REFRESH_ENABLED=False,
    )


@pytest.fixture
def gateway(settings):
    return PersistenceGateway.from_settings(settings, create_tables=True)


@pytest.fixture
def orchestrator():
    return Orchestrator([SyntheticProvider(Synthesizer(random.Random(7)))])


@pytest.fixture
def service(gateway, orchestrator):
    return ProductService(gateway, orchestrator)


@pytest.fixture
def make_listing():
    def _make(platform="Amazon", price=1000.0, rating=4.2, product_id=None,
              availability=Availability.IN_STOCK, **kwargs):
        return PlatformListing(
            platform=platform,
            price=price,
            rating=rating,
            review_count=kwargs.pop("review_count", 120),
            seller=kwargs.pop("seller", f"{platform} Seller"),
            availability=availability,
            product_id=product_id,
            **kwargs,
        )

    return _make
