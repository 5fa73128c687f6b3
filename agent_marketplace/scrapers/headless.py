"""Headless browser control for the marketplace site.

This module drives a single long-lived Playwright session against a locally
installed Chromium-family browser. The marketplace is a client-rendered
application: listings mount asynchronously and paginate through a "Load More"
button rather than page navigation, so navigation is followed by a
content-readiness wait before any extraction script runs.

Key features:
- One browser, context and page for the whole process lifetime
- Readiness polling, hydration pause and lazy-content scrolling on listings
- "Load More" pagination with a scripted click fallback
- Heavy resources and trackers blocked to speed up page loads
- Engine failures wrapped into the marketplace error taxonomy
"""

import asyncio
import logging
import os
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from ..config import BrowserSettings
from ..errors import (
    BrowserClosedError,
    BrowserNotFoundError,
    ElementNotFoundError,
    NavigationError,
    NavigationTimeout,
    ScriptExecutionError,
)
from ..urls import is_listing_page
from .detector import find_browser_executable

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route
else:
    Browser = BrowserContext = Page = Playwright = Route = Any

logger = logging.getLogger(__name__)

READY_MARKER = "Agents Found"
LOADING_MARKER = "Searching..."
LOAD_MORE_SELECTOR = '[data-load-more-target="true"]'

SCROLL_TO_BOTTOM_JS = "window.scrollTo(0, document.body.scrollHeight)"
SCROLL_TO_MIDDLE_JS = "window.scrollTo(0, document.body.scrollHeight / 2)"
SCROLL_BY_JS = "(offset) => window.scrollBy(0, offset)"

RESULT_PROGRESS_JS = """
() => {
    const text = document.body ? (document.body.innerText || '') : '';
    const match = text.match(/(\\d+)\\s+Agents?\\s+Found/i);
    const cards = Array.from(document.querySelectorAll('button'))
        .filter(btn => btn.textContent && btn.textContent.trim() === 'View').length;
    return { cards: cards, expected: match ? parseInt(match[1], 10) : 0 };
}
"""

MARK_LOAD_MORE_JS = """
() => {
    document.querySelectorAll('[data-load-more-target]')
        .forEach(el => el.removeAttribute('data-load-more-target'));

    const isUsable = el => !el.disabled &&
        !!(el.offsetWidth || el.offsetHeight || el.getClientRects().length);
    const label = el => (el.textContent || '').trim().toLowerCase();
    const candidates = Array.from(document.querySelectorAll('button, a, [role="button"]'))
        .filter(isUsable);

    const control = candidates.find(el => label(el) === 'load more') ||
        candidates.find(el => label(el).includes('load more'));
    if (!control) {
        return false;
    }

    control.setAttribute('data-load-more-target', 'true');
    control.scrollIntoView({ block: 'center' });
    return true;
}
"""

SCRIPTED_CLICK_JS = """
(selector) => {
    const el = document.querySelector(selector);
    if (!el) {
        return false;
    }
    el.click();
    return true;
}
"""

_BLOCKED_RESOURCE_TYPES = {"image", "media", "font"}
_BLOCKED_HOSTS = [
    "google-analytics",
    "googletagmanager",
    "facebook",
    "doubleclick",
    "adsystem",
    "hotjar",
]


class PlaywrightBrowser:
    """Browser controller backed by one Playwright session.

    The session starts lazily on first use and stays open until close().
    Construction fails immediately if no browser executable is available.
    """

    def __init__(
        self,
        settings: BrowserSettings | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Resolve the browser executable without launching it.

        Args:
            settings: Browser settings, defaults to environment configuration.
            logger: Logger for browser activity, defaults to the module logger.

        Raises:
            BrowserNotFoundError: If no compatible browser is installed.
        """
        self.settings = settings or BrowserSettings()
        self.logger = logger or logging.getLogger(__name__)
        self.executable_path = self._resolve_executable()

        self.playwright: Playwright | None = None
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.page: Page | None = None
        self._closed = False
        self._start_lock = asyncio.Lock()

    async def __aenter__(self) -> "PlaywrightBrowser":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    @property
    def timeout_ms(self) -> int:
        return self.settings.timeout_seconds * 1000

    @property
    def closed(self) -> bool:
        return self._closed

    def _resolve_executable(self) -> str:
        configured = self.settings.executable_path
        if configured:
            if not os.path.isfile(configured):
                raise BrowserNotFoundError(
                    f"configured browser executable does not exist: {configured}",
                    operation="start",
                )
            return configured

        path = find_browser_executable()
        if path is None:
            raise BrowserNotFoundError(
                "no Chrome, Chromium or Brave executable found on this host",
                operation="start",
            )
        return path

    async def start(self) -> None:
        """Launch the browser session if it is not running yet.

        Raises:
            BrowserClosedError: If the controller was already closed.
            NavigationError: If the engine fails to launch.
        """
        if self._closed:
            raise BrowserClosedError("browser session is closed", operation="start")

        async with self._start_lock:
            if self.page is not None:
                return

            try:
                self.playwright = await async_playwright().start()
                self.browser = await self.playwright.chromium.launch(
                    executable_path=self.executable_path,
                    headless=self.settings.headless,
                    args=[
                        "--no-sandbox",
                        "--disable-setuid-sandbox",
                        "--disable-dev-shm-usage",
                        "--disable-gpu",
                        "--no-first-run",
                        "--no-default-browser-check",
                        "--disable-extensions",
                        "--disable-plugins",
                        "--disable-background-timer-throttling",
                        "--disable-renderer-backgrounding",
                        "--disable-backgrounding-occluded-windows",
                    ],
                )
                self.context = await self.browser.new_context(
                    user_agent=self.settings.user_agent,
                    viewport={
                        "width": self.settings.window_width,
                        "height": self.settings.window_height,
                    },
                    java_script_enabled=True,
                    locale="en-US",
                )
                self.context.set_default_timeout(self.timeout_ms)
                await self.context.route("**/*", self._route_handler)
                self.page = await self.context.new_page()

                self.logger.info(f"Headless browser started: {self.executable_path}")

            except PlaywrightError as e:
                self.logger.error(f"Failed to start headless browser: {e}")
                await self._shutdown()
                raise NavigationError(
                    f"browser engine failed to start: {e}", operation="start"
                ) from e
            except BaseException:
                await self._shutdown()
                raise

    async def close(self) -> None:
        """Release the browser session. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._shutdown()

    async def _shutdown(self) -> None:
        """Close page, context, browser and Playwright, logging cleanup errors."""
        for name, resource in (("context", self.context), ("browser", self.browser)):
            if resource is None:
                continue
            try:
                await resource.close()
            except PlaywrightError as e:
                self.logger.warning(f"Error closing browser {name}: {e}")

        if self.playwright is not None:
            try:
                await self.playwright.stop()
            except PlaywrightError as e:
                self.logger.warning(f"Error stopping Playwright: {e}")

        self.page = None
        self.context = None
        self.browser = None
        self.playwright = None
        self.logger.debug("Headless browser stopped and cleaned up")

    async def _route_handler(self, route: Route) -> None:
        """Block heavy media and trackers, let documents, scripts and XHR through."""
        request = route.request
        if request.resource_type in _BLOCKED_RESOURCE_TYPES:
            await route.abort()
        elif any(host in request.url for host in _BLOCKED_HOSTS):
            await route.abort()
        else:
            await route.continue_()

    async def _get_page(self) -> Page:
        if self._closed:
            raise BrowserClosedError("browser session is closed")
        if self.page is None:
            await self.start()
        if self.page is None:
            raise BrowserClosedError("browser session is not available")
        return self.page

    async def navigate(self, url: str) -> None:
        """Load a page and wait until its content is ready for extraction.

        Args:
            url: Absolute URL to load.

        Raises:
            NavigationTimeout: If the page did not load within the timeout.
            NavigationError: If the engine reported any other load failure.
        """
        page = await self._get_page()
        self.logger.debug(f"Navigating to {url}")

        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
            await page.wait_for_selector("body", state="attached", timeout=self.timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(str(e), operation="navigate", url=url) from e
        except PlaywrightError as e:
            raise NavigationError(str(e), operation="navigate", url=url) from e

        await self._wait_for_content(page, url)

    async def run_script(self, src: str, arg: Any = None) -> Any:
        """Evaluate a script in the page and return its JSON-compatible value.

        Args:
            src: Expression or function source.
            arg: Optional argument passed to a function source.

        Raises:
            ScriptExecutionError: If evaluation throws in the page.
        """
        page = await self._get_page()
        try:
            if arg is None:
                return await page.evaluate(src)
            return await page.evaluate(src, arg)
        except PlaywrightError as e:
            raise ScriptExecutionError(str(e), operation="run_script", url=page.url) from e

    async def wait_for_element(self, selector: str) -> None:
        """Block until a selector is visible.

        Raises:
            ElementNotFoundError: If the selector never became visible.
        """
        page = await self._get_page()
        try:
            await page.wait_for_selector(selector, state="visible", timeout=self.timeout_ms)
        except PlaywrightError as e:
            raise ElementNotFoundError(
                f"element {selector} not found: {e}", operation="wait_for_element", url=page.url
            ) from e

    async def scroll(self, offset_px: int) -> None:
        """Scroll the viewport vertically by offset_px pixels."""
        await self.run_script(SCROLL_BY_JS, offset_px)

    async def _wait_for_content(self, page: Page, url: str) -> None:
        """Apply the readiness policy matching the page type."""
        if not is_listing_page(url):
            await asyncio.sleep(self.settings.static_page_pause)
            return

        if not await self._wait_for_results(page):
            self.logger.warning(f"Results did not finish rendering on {url}, using current DOM")
            return

        await asyncio.sleep(self.settings.hydration_pause)
        await self._trigger_lazy_content(page)
        clicks = await self._load_all_results(page)
        self.logger.debug(f"Listing {url} ready after {clicks} load-more clicks")

    async def _wait_for_results(self, page: Page) -> bool:
        """Poll the rendered text until the result count replaces the spinner.

        Returns:
            True once "Agents Found" is shown and "Searching..." is gone.
        """
        for attempt in range(1, self.settings.readiness_poll_attempts + 1):
            try:
                text = await page.inner_text("body")
            except PlaywrightError as e:
                self.logger.debug(f"Readiness check {attempt} could not read body: {e}")
                text = ""

            if READY_MARKER in text and LOADING_MARKER not in text:
                return True

            await asyncio.sleep(self.settings.readiness_poll_interval)

        return False

    async def _trigger_lazy_content(self, page: Page) -> None:
        """Scroll to the bottom and back to the middle to mount lazy cards."""
        for _ in range(self.settings.scroll_cycles):
            try:
                await page.evaluate(SCROLL_TO_BOTTOM_JS)
                await asyncio.sleep(self.settings.scroll_pause)
                await page.evaluate(SCROLL_TO_MIDDLE_JS)
                await asyncio.sleep(self.settings.scroll_pause / 2)
            except PlaywrightError as e:
                self.logger.debug(f"Lazy-content scroll failed: {e}")
                return

    async def _load_all_results(self, page: Page) -> int:
        """Click "Load More" until every result is mounted.

        Stops when no control is found, when a click fails both directly and
        through the scripted fallback, when the card count overshoots the
        page's expected count, or after load_more_max_clicks clicks.

        Returns:
            Number of successful clicks.
        """
        clicks = 0
        while clicks < self.settings.load_more_max_clicks:
            try:
                progress = await page.evaluate(RESULT_PROGRESS_JS) or {}
                found = await page.evaluate(MARK_LOAD_MORE_JS)
            except PlaywrightError as e:
                self.logger.debug(f"Load-more detection failed: {e}")
                break

            cards = int(progress.get("cards", 0) or 0)
            expected = int(progress.get("expected", 0) or 0)
            if expected and cards > expected + self.settings.load_more_overshoot:
                self.logger.debug(f"Card count {cards} overshoots expected {expected}, stopping")
                break

            if not found:
                break

            if not await self._click_load_more(page):
                self.logger.debug("Load More control could not be clicked, stopping")
                break

            clicks += 1
            await asyncio.sleep(self.settings.load_more_pause)

        return clicks

    async def _click_load_more(self, page: Page) -> bool:
        """Click the marked control, falling back to a scripted click."""
        try:
            await page.click(LOAD_MORE_SELECTOR, timeout=min(self.timeout_ms, 5000))
            return True
        except PlaywrightError as e:
            self.logger.debug(f"Direct Load More click failed: {e}")

        try:
            return bool(await page.evaluate(SCRIPTED_CLICK_JS, LOAD_MORE_SELECTOR))
        except PlaywrightError as e:
            self.logger.debug(f"Scripted Load More click failed: {e}")
            return False
