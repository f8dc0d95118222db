import json
import logging
import time
from typing import List, Optional, Sequence

import requests

from core.ai.prompts import build_listing_prompt
from core.ai.schema import parse_entries
from core.exceptions import (
    NoDataError,
    PayloadValidationError,
    ProviderNotConfigured,
    TransientProviderError,
)
from core.listing import PlatformListing

logger = logging.getLogger("provider.gemini")

GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 2048,
}


def strip_code_fences(text: str) -> str:
    """Remove the ```json ... ``` wrapper models like to put around JSON."""
    text = (text or "").strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


class GeminiClient:
    """Asks Gemini for a JSON listing per platform and validates the answer.

    Transient failures (connection errors, timeouts, non-2xx statuses) are
    retried up to ``max_attempts`` times in total with a fixed pause. A
    well-formed but empty answer is final and is not retried.
    """

    def __init__(self, settings, session: Optional[requests.Session] = None):
        self.api_key = settings.GEMINI_API_KEY
        self.api_url = settings.GEMINI_API_URL
        self.configured = settings.gemini_configured
        self.timeout = settings.AI_TIMEOUT_SECONDS
        self.max_attempts = max(1, settings.AI_MAX_ATTEMPTS)
        self.retry_delay = settings.AI_RETRY_DELAY_SECONDS
        self.session = session or requests.Session()

        if self.configured:
            logger.info("Gemini API key configured")
        else:
            logger.warning("Gemini API key not configured - AI listings disabled")

    def generate_all(self, product_name: str, platforms: Sequence[str],
                     product_id: Optional[int] = None) -> List[PlatformListing]:
        """Return validated listings for ``platforms``.

        Raises:
            ProviderNotConfigured: missing or placeholder API key (no request is made)
            TransientProviderError: every attempt hit a network or HTTP error
            NoDataError: the model answered with no platforms at all
            PayloadValidationError: malformed response or no entry survived validation
        """
        if not self.configured:
            raise ProviderNotConfigured("Gemini API key is missing or a placeholder")

        prompt = build_listing_prompt(product_name, platforms)
        text = self._call_with_retry(prompt)
        return self.parse_listings(text, product_name, product_id)

    def parse_listings(self, text: str, product_name: str,
                       product_id: Optional[int] = None) -> List[PlatformListing]:
        """Turn the model's text answer into listings, dropping invalid entries."""
        body = strip_code_fences(text)
        if not body:
            raise NoDataError("Gemini returned an empty answer")
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            raise PayloadValidationError(f"Response is not valid JSON: {e}") from e

        if not isinstance(payload, dict) or "platforms" not in payload:
            raise PayloadValidationError("JSON missing 'platforms' array")
        entries = payload["platforms"]
        if not isinstance(entries, list):
            raise PayloadValidationError("'platforms' is not an array")
        if not entries:
            raise NoDataError("Empty platforms array")

        logger.debug("Parsing %d platforms...", len(entries))
        results = parse_entries(entries, product_name, product_id)
        for result in results:
            if not result.ok:
                logger.warning("Skipping platform entry %d: %s", result.index, result.error)

        listings = [result.listing for result in results if result.ok]
        if not listings:
            raise PayloadValidationError("No valid platform entries in response")
        logger.info("Successfully parsed %d of %d platforms", len(listings), len(entries))
        return listings

    def _call_with_retry(self, prompt: str) -> str:
        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                logger.info("Attempt %d/%d - calling Gemini API", attempt, self.max_attempts)
                return self._call(prompt)
            except TransientProviderError as e:
                last_error = e
                logger.warning("Error on attempt %d: %s", attempt, e)
                if attempt < self.max_attempts:
                    logger.info("Retrying in %s seconds...", self.retry_delay)
                    time.sleep(self.retry_delay)
        raise TransientProviderError(f"All {self.max_attempts} Gemini attempts failed: {last_error}")

    def _call(self, prompt: str) -> str:
        request_body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": GENERATION_CONFIG,
        }
        try:
            response = self.session.post(
                self.api_url,
                params={"key": self.api_key},
                json=request_body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise TransientProviderError(f"Network error: {e}") from e

        if not response.ok:
            raise TransientProviderError(f"API HTTP {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
        except ValueError as e:
            raise PayloadValidationError(f"API response is not JSON: {e}") from e

        if isinstance(data, dict) and "error" in data:
            message = data["error"].get("message") if isinstance(data["error"], dict) else data["error"]
            raise PayloadValidationError(f"API Error: {message}")

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            if isinstance(data, dict) and data.get("candidates") == []:
                raise NoDataError("Gemini returned no candidates") from e
            raise PayloadValidationError("Unexpected response structure") from e

        logger.info("API response received (%d chars)", len(text or ""))
        return text
