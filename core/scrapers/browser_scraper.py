from typing import Dict, Optional
import random
import time

from bs4 import BeautifulSoup
from playwright.sync_api import sync_playwright

from core.scrapers.base import BaseScraper
from core.scrapers.search_page import SearchPage


class BrowserScraper(BaseScraper):
    """Slow scraping engine: headless Chromium through Playwright.

    Renders JavaScript and waits for the result grid, so it gets through far
    more often than the HTTP engine, at the cost of a browser launch per call.
    """

    def __init__(self, pages: Dict[str, SearchPage], user_agent: Optional[str] = None,
                 delay_seconds: float = 3.0, timeout_ms: int = 20000, wait_ms: int = 10000):
        super().__init__("browser", pages)
        self.user_agent = user_agent or (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36"
        )
        self.delay_seconds = delay_seconds
        self.timeout_ms = timeout_ms
        self.wait_ms = wait_ms

    def fetch(self, url: str, page: SearchPage) -> BeautifulSoup:
        self.logger.info("Rendering %s", url)
        if self.delay_seconds > 0:
            time.sleep(random.uniform(self.delay_seconds / 3, self.delay_seconds))

        with sync_playwright() as pw:
            browser = pw.chromium.launch(
                headless=True,
                args=["--disable-blink-features=AutomationControlled", "--no-sandbox"],
            )
            try:
                context = browser.new_context(user_agent=self.user_agent, locale="en-IN")
                tab = context.new_page()
                tab.goto(url, timeout=self.timeout_ms, wait_until="domcontentloaded")
                selector = ", ".join(page.result_selectors)
                try:
                    tab.wait_for_selector(selector, timeout=self.wait_ms)
                except Exception as e:  # pylint: disable=broad-exception-caught
                    # Parse whatever rendered; SearchPage reports blocking or no results
                    self.logger.warning("Result grid did not appear on %s: %s", url, e)
                html = tab.content()
            finally:
                browser.close()

        return BeautifulSoup(html, "lxml")
