"""Playwright-based implementation of the automation driver.

This module wraps Playwright behind the AutomationBrowser and AutomationPage
protocols. Two launch modes are supported:
- Remote mode: connects to a browser endpoint over CDP (Chrome DevTools
  Protocol), e.g. a hosted browser service
- Local mode: launches Playwright's bundled Chromium with playwright-stealth
  applied to every page
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)
from playwright.async_api import (
    Error as PlaywrightError,
)
from playwright.async_api import (
    TimeoutError as PlaywrightTimeoutError,
)
from playwright_stealth import Stealth

from courtbook.utils.config import AppConfig
from courtbook.utils.exceptions import (
    BrowserUnavailableError,
    ElementNotFound,
    NavigationError,
    SiteInteractionError,
)

BrowserLauncher = Callable[[], Awaitable["PlaywrightBrowser"]]


@asynccontextmanager
async def _driver_errors(selector: str) -> AsyncIterator[None]:
    """Translate Playwright failures into site interaction errors."""
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise ElementNotFound(f"Timed out waiting for {selector}") from e
    except PlaywrightError as e:
        raise SiteInteractionError(f"Browser action on {selector} failed: {e}") from e


class PlaywrightPage:
    """One Playwright page exposed through the AutomationPage protocol."""

    def __init__(self, page: Page) -> None:
        self._page = page

    @property
    def url(self) -> str:
        """Current page URL."""
        return self._page.url

    async def navigate(self, url: str, timeout: int | None = None) -> None:
        """Navigate to URL and wait for DOM content.

        Raises:
            NavigationError: If navigation fails or times out.
        """
        try:
            await self._page.goto(url, timeout=timeout, wait_until="domcontentloaded")
        except PlaywrightError as e:
            raise NavigationError(f"Failed to navigate to {url}: {e}") from e

    async def click(self, selector: str, timeout: int | None = None) -> None:
        async with _driver_errors(selector):
            await self._page.click(selector, timeout=timeout)

    async def fill(self, selector: str, value: str) -> None:
        async with _driver_errors(selector):
            await self._page.fill(selector, value)

    async def type(self, selector: str, text: str) -> None:
        async with _driver_errors(selector):
            await self._page.locator(selector).press_sequentially(text)

    async def wait_for(self, selector: str, timeout: int | None = None) -> None:
        async with _driver_errors(selector):
            await self._page.wait_for_selector(selector, timeout=timeout)

    async def read_text(self, selector: str, timeout: int | None = None) -> str:
        async with _driver_errors(selector):
            return await self._page.locator(selector).inner_text(timeout=timeout)

    async def is_visible(self, selector: str, timeout: int = 1000) -> bool:
        """Wait briefly for a visible match; False on timeout or page error."""
        try:
            await self._page.wait_for_selector(
                selector, state="visible", timeout=timeout
            )
            return True
        except PlaywrightError:
            return False

    async def pause(self, ms: int) -> None:
        await self._page.wait_for_timeout(ms)

    async def title(self) -> str:
        return await self._page.title()

    def set_default_timeout(self, timeout: int) -> None:
        self._page.set_default_timeout(timeout)

    async def close(self) -> None:
        if not self._page.is_closed():
            await self._page.close()


class PlaywrightBrowser:
    """Playwright browser handle for the automation session.

    Attributes:
        headless: Whether a locally launched browser runs headless.
        cdp_url: Remote endpoint to connect to; None launches locally.
        cdp_timeout: Timeout for the CDP connection in milliseconds.

    Example:
        >>> browser = PlaywrightBrowser(cdp_url="wss://browser.example/devtools")
        >>> await browser.launch()
        >>> page = await browser.new_page()
    """

    def __init__(
        self,
        headless: bool = True,
        cdp_url: str | None = None,
        cdp_timeout: int = 10000,
    ) -> None:
        self.headless = headless
        self.cdp_url = cdp_url
        self.cdp_timeout = cdp_timeout
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._stealth = Stealth()

    @property
    def is_cdp_connection(self) -> bool:
        """True if connected to a remote browser over CDP."""
        return self.cdp_url is not None

    async def launch(self) -> None:
        """Start Playwright and connect to or launch the browser.

        Raises:
            BrowserUnavailableError: If the browser cannot be reached or started.
        """
        self._playwright = await async_playwright().start()
        try:
            if self.cdp_url:
                self._browser = await self._playwright.chromium.connect_over_cdp(
                    self.cdp_url,
                    timeout=self.cdp_timeout,
                )
                contexts = self._browser.contexts
                self._context = contexts[0] if contexts else None
            else:
                self._browser = await self._playwright.chromium.launch(
                    headless=self.headless
                )
        except PlaywrightError as e:
            await self._playwright.stop()
            self._playwright = None
            target = self.cdp_url or "local Chromium"
            raise BrowserUnavailableError(
                f"Cannot start automation browser ({target}): {e}",
                endpoint=self.cdp_url,
            ) from e

    async def new_page(self) -> PlaywrightPage:
        """Open a new page in the shared context.

        Raises:
            RuntimeError: If browser not launched.
        """
        if not self._browser:
            raise RuntimeError("Browser not launched")
        if self._context is None:
            self._context = await self._browser.new_context()
        page = await self._context.new_page()
        if not self.is_cdp_connection:
            await self._stealth.apply_stealth_async(page)
        return PlaywrightPage(page)

    async def pages(self) -> list[PlaywrightPage]:
        """Return every open page across all contexts.

        Raises:
            RuntimeError: If browser not launched.
        """
        if not self._browser:
            raise RuntimeError("Browser not launched")
        return [
            PlaywrightPage(page)
            for context in self._browser.contexts
            for page in context.pages
        ]

    async def close(self) -> None:
        """Close the browser and stop Playwright.

        Remote sessions are owned by this process, so closing also ends
        the remote browser session.
        """
        try:
            if self._browser:
                await self._browser.close()
        finally:
            if self._playwright:
                await self._playwright.stop()
            self._browser = None
            self._context = None
            self._playwright = None


def browser_launcher(config: AppConfig) -> BrowserLauncher:
    """Build the launcher the session manager uses to acquire a browser.

    Args:
        config: Application configuration naming the browser endpoint.

    Returns:
        Async callable producing a launched PlaywrightBrowser.
    """

    async def launch() -> PlaywrightBrowser:
        if not config.browser_endpoint and not config.local_browser:
            raise BrowserUnavailableError(
                "No automation browser configured. Set COURTBOOK_BROWSER_ENDPOINT "
                "to a CDP endpoint, or COURTBOOK_LOCAL_BROWSER=1 to launch "
                "a local Chromium."
            )
        browser = PlaywrightBrowser(
            headless=config.headless,
            cdp_url=config.browser_endpoint,
        )
        await browser.launch()
        return browser

    return launch
