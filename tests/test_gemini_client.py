import json

import pytest
import requests

from config.settings import Settings
from core.ai.gemini_client import GeminiClient, strip_code_fences
from core.exceptions import (
    NoDataError,
    PayloadValidationError,
    ProviderNotConfigured,
    TransientProviderError,
)
from core.listing import Availability
from core.providers.gemini_provider import GeminiProvider


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def gemini_answer(text):
    return FakeResponse(payload={"candidates": [{"content": {"parts": [{"text": text}]}}]})


def platforms_answer(entries, fenced=False):
    text = json.dumps({"platforms": entries})
    if fenced:
        text = f"```json\n{text}\n```"
    return gemini_answer(text)


AMAZON_ENTRY = {
    "platform": "Amazon",
    "price": "₹79,900",
    "rating": 4.5,
    "reviewCount": "12,345",
    "seller": "Appario Retail",
    "deliveryTime": "2-3 days",
    "returnPolicy": "7 days replacement",
    "warranty": "1 year manufacturer warranty",
    "offers": "Bank Offer: 10% instant discount",
    "availability": "In Stock",
}


@pytest.fixture
def ai_settings():
    return Settings(
        GEMINI_API_KEY="test-key",
        AI_MAX_ATTEMPTS=2,
        AI_RETRY_DELAY_SECONDS=0,
        DATABASE_URL="sqlite://",
    )


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n[]\n```') == "[]"
    assert strip_code_fences("  {}  ") == "{}"


def test_missing_or_placeholder_key_makes_no_request():
    for key in ("", "YOUR_API_KEY_HERE"):
        session = FakeSession()
        client = GeminiClient(Settings(GEMINI_API_KEY=key, DATABASE_URL="sqlite://"), session=session)
        with pytest.raises(ProviderNotConfigured):
            client.generate_all("iPhone 15", ["Amazon"])
        assert session.calls == []


def test_valid_answer_becomes_listings(ai_settings):
    entries = [AMAZON_ENTRY, dict(AMAZON_ENTRY, platform="tata cliq", price=81000, availability="Only 2 left")]
    session = FakeSession(platforms_answer(entries, fenced=True))
    client = GeminiClient(ai_settings, session=session)

    listings = client.generate_all("iPhone 15", ["Amazon", "Tata CLiQ"], product_id=4)

    assert [x.platform for x in listings] == ["Amazon", "Tata CLiQ"]
    amazon = listings[0]
    assert amazon.price == 79900
    assert amazon.review_count == 12345
    assert amazon.delivery_estimate == "2-3 days"
    assert amazon.product_id == 4
    assert amazon.source == "gemini"
    assert amazon.product_link == "https://www.amazon.in/s?k=iphone+15"
    assert listings[1].availability == Availability.LIMITED_STOCK

    url, kwargs = session.calls[0]
    assert url == ai_settings.GEMINI_API_URL
    assert kwargs["params"] == {"key": "test-key"}
    assert kwargs["json"]["generationConfig"]["maxOutputTokens"] == 2048
    assert "iPhone 15" in kwargs["json"]["contents"][0]["parts"][0]["text"]


def test_invalid_entries_are_dropped(ai_settings):
    entries = [
        {"platform": "eBay", "price": 100, "rating": 4},
        {"platform": "Flipkart", "price": 0, "rating": 4},
        {"platform": "Myntra", "price": 500, "rating": 9},
        "not an object",
        AMAZON_ENTRY,
        dict(AMAZON_ENTRY, price=1),
    ]
    client = GeminiClient(ai_settings, session=FakeSession(platforms_answer(entries)))

    listings = client.generate_all("iPhone 15", ["Amazon"])

    assert len(listings) == 1
    assert listings[0].platform == "Amazon"
    assert listings[0].price == 79900


def test_empty_platform_name_is_dropped(ai_settings):
    entries = [dict(AMAZON_ENTRY, platform=""), AMAZON_ENTRY]
    client = GeminiClient(ai_settings, session=FakeSession(platforms_answer(entries)))

    listings = client.generate_all("iPhone 15", ["Amazon"])

    assert len(listings) == 1
    assert listings[0].platform == "Amazon"


def test_no_valid_entries_is_a_payload_error(ai_settings):
    entries = [{"platform": "eBay", "price": 100}]
    session = FakeSession(platforms_answer(entries))
    with pytest.raises(PayloadValidationError):
        GeminiClient(ai_settings, session=session).generate_all("iPhone 15", ["Amazon"])
    assert len(session.calls) == 1


def test_empty_platforms_array_is_not_retried(ai_settings):
    session = FakeSession(platforms_answer([]), platforms_answer([AMAZON_ENTRY]))
    with pytest.raises(NoDataError):
        GeminiClient(ai_settings, session=session).generate_all("iPhone 15", ["Amazon"])
    assert len(session.calls) == 1


def test_malformed_json_is_not_retried(ai_settings):
    session = FakeSession(gemini_answer("Sorry, I cannot help with that."))
    with pytest.raises(PayloadValidationError):
        GeminiClient(ai_settings, session=session).generate_all("iPhone 15", ["Amazon"])
    assert len(session.calls) == 1


def test_missing_platforms_key(ai_settings):
    session = FakeSession(gemini_answer(json.dumps({"items": []})))
    with pytest.raises(PayloadValidationError):
        GeminiClient(ai_settings, session=session).generate_all("iPhone 15", ["Amazon"])


def test_api_error_body(ai_settings):
    session = FakeSession(FakeResponse(payload={"error": {"message": "API key not valid"}}))
    with pytest.raises(PayloadValidationError, match="API key not valid"):
        GeminiClient(ai_settings, session=session).generate_all("iPhone 15", ["Amazon"])


def test_no_candidates_is_no_data(ai_settings):
    session = FakeSession(FakeResponse(payload={"candidates": []}))
    with pytest.raises(NoDataError):
        GeminiClient(ai_settings, session=session).generate_all("iPhone 15", ["Amazon"])


def test_server_error_is_retried_once(ai_settings):
    session = FakeSession(FakeResponse(status_code=503, text="overloaded"), platforms_answer([AMAZON_ENTRY]))
    listings = GeminiClient(ai_settings, session=session).generate_all("iPhone 15", ["Amazon"])
    assert len(listings) == 1
    assert len(session.calls) == 2


def test_gives_up_after_max_attempts(ai_settings):
    session = FakeSession(
        requests.ConnectionError("connection refused"),
        requests.Timeout("read timed out"),
        platforms_answer([AMAZON_ENTRY]),
    )
    with pytest.raises(TransientProviderError):
        GeminiClient(ai_settings, session=session).generate_all("iPhone 15", ["Amazon"])
    assert len(session.calls) == 2


def test_provider_turns_failures_into_none(ai_settings):
    provider = GeminiProvider(GeminiClient(ai_settings, session=FakeSession(platforms_answer([]))))
    assert provider.try_fetch("iPhone 15", ["Amazon"]) is None


def test_provider_single_platform_requests_full_set(ai_settings):
    entries = [AMAZON_ENTRY, dict(AMAZON_ENTRY, platform="Flipkart", price=78999)]
    session = FakeSession(platforms_answer(entries))
    provider = GeminiProvider(GeminiClient(ai_settings, session=session))

    listing = provider.try_fetch_one("flipkart", "iPhone 15", ["Amazon"])

    assert listing.platform == "Flipkart"
    prompt = session.calls[0][1]["json"]["contents"][0]["parts"][0]["text"]
    assert "PLATFORMS TO ANALYZE: Amazon, flipkart" in prompt
