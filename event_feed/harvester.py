"""
Page harvester using Playwright.

Loads the events listing, waits for client-rendered cards, and returns the
outer markup of each card. Card lookup goes through CardSelectorStrategy
implementations tried in order, so selector changes stay out of the
pipeline code.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from playwright.async_api import (
    Error as PlaywrightError,
    Page,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .errors import HarvestError
from .logger import get_logger
from .selectors import CardSelectorStrategy, default_strategies

log = get_logger('harvester')

LAUNCH_ARGS = [
    '--disable-blink-features=AutomationControlled',
    '--disable-dev-shm-usage',
    '--disable-extensions',
    '--no-first-run',
]

USER_AGENT = (
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) '
    'AppleWebKit/537.36 (KHTML, like Gecko) '
    'Chrome/120.0.0.0 Safari/537.36'
)

SAMPLE_CHARS = 200

# Scrolls to the bottom in 100px steps so lazily rendered cards load
AUTO_SCROLL_JS = """async () => {
    await new Promise((resolve) => {
        let totalHeight = 0;
        const distance = 100;
        const timer = setInterval(() => {
            const scrollHeight = document.body.scrollHeight;
            window.scrollBy(0, distance);
            totalHeight += distance;
            if (totalHeight >= scrollHeight) {
                clearInterval(timer);
                resolve();
            }
        }, 100);
    });
}"""


def date_window(now: Optional[datetime] = None, hours: int = 48) -> Tuple[str, str]:
    """(start, end) dates in YYYY-MM-DD for [now, now + hours]."""
    now = now or datetime.now()
    end = now + timedelta(hours=hours)
    return now.strftime('%Y-%m-%d'), end.strftime('%Y-%m-%d')


def build_listing_url(template: str, now: Optional[datetime] = None, window_hours: int = 48) -> str:
    """Render the listing URL template for the rolling window."""
    start_date, end_date = date_window(now, window_hours)
    return template.format(start_date=start_date, end_date=end_date)


class BrowserSession:
    """
    Context manager owning one Playwright browser.

    Usage:
        async with BrowserSession() as session:
            page = await session.new_page()
    """

    def __init__(self, headless: bool = True, playwright_factory=async_playwright):
        self.headless = headless
        self._factory = playwright_factory
        self._playwright = None
        self._browser = None
        self._context = None

    async def __aenter__(self):
        try:
            self._playwright = await self._factory().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=LAUNCH_ARGS,
            )
            self._context = await self._browser.new_context(
                user_agent=USER_AGENT,
                viewport={'width': 1920, 'height': 1080},
                locale='en-US',
            )
        except Exception as e:
            await self.close()
            raise HarvestError(f"Browser launch failed: {e}") from e
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Release context, browser and driver (each at most once)."""
        context, browser, playwright = self._context, self._browser, self._playwright
        self._context = self._browser = self._playwright = None

        for name, closer in (
            ('context', context.close if context else None),
            ('browser', browser.close if browser else None),
            ('playwright', playwright.stop if playwright else None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except PlaywrightError as e:
                log.warning(f"Error closing {name}: {e}")

    async def new_page(self) -> Page:
        try:
            return await self._context.new_page()
        except PlaywrightError as e:
            raise HarvestError(f"Could not open page: {e}") from e


class PageHarvester:
    """Collects raw card markup from the events listing."""

    def __init__(
        self,
        strategies: Optional[Sequence[CardSelectorStrategy]] = None,
        headless: bool = True,
        navigation_timeout_ms: int = 60000,
        card_wait_ms: int = 10000,
        auto_scroll: bool = True,
        playwright_factory=async_playwright,
    ):
        self.strategies = list(strategies) if strategies else default_strategies()
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self.card_wait_ms = card_wait_ms
        self.auto_scroll = auto_scroll
        self.playwright_factory = playwright_factory

    @property
    def combined_selector(self) -> str:
        return ", ".join(strategy.selector for strategy in self.strategies)

    async def harvest(self, url: str) -> List[str]:
        """
        Load `url` and return one markup fragment per visible card.

        Raises:
            HarvestError: the browser could not start or the page failed to load

        Returns:
            Card fragments, or [] when no card appeared within the wait window
        """
        log.info(f"Navigating to: {url}")

        async with BrowserSession(self.headless, self.playwright_factory) as session:
            page = await session.new_page()
            page.set_default_timeout(self.navigation_timeout_ms)

            await self._navigate(page, url)

            if not await self._wait_for_cards(page):
                log.info("No event cards found in the window. This might be normal.")
                return []

            if self.auto_scroll:
                await self._scroll(page)

            fragments = await self._collect(page)

        log.info(f"Found {len(fragments)} event cards")
        if fragments:
            sample = fragments[0]
            if len(sample) > SAMPLE_CHARS:
                sample = sample[:SAMPLE_CHARS] + '...'
            log.debug(f"Sample event card HTML: {sample}")
        return fragments

    async def _navigate(self, page: Page, url: str):
        try:
            response = await page.goto(url, wait_until='networkidle', timeout=self.navigation_timeout_ms)
        except PlaywrightError as e:
            raise HarvestError(f"Navigation to {url} failed: {e}") from e

        if response is not None and response.status >= 400:
            raise HarvestError(f"Navigation to {url} returned HTTP {response.status}")

    async def _wait_for_cards(self, page: Page) -> bool:
        try:
            await page.wait_for_selector(self.combined_selector, state='visible', timeout=self.card_wait_ms)
            return True
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as e:
            raise HarvestError(f"Waiting for event cards failed: {e}") from e

    async def _scroll(self, page: Page):
        try:
            await page.evaluate(AUTO_SCROLL_JS)
            await page.wait_for_timeout(1000)
        except PlaywrightError as e:
            log.warning(f"Auto-scroll failed, extracting visible cards only: {e}")

    async def _collect(self, page: Page) -> List[str]:
        for strategy in self.strategies:
            try:
                fragments = await strategy.collect(page)
            except PlaywrightError as e:
                log.warning(f"{strategy.name} selector failed: {e}")
                continue
            if fragments:
                log.info(f"Found {len(fragments)} cards with {strategy.name} selector")
                return fragments
            log.debug(f"No cards with {strategy.name} selector")
        return []
