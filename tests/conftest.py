"""Shared pytest fixtures for courtbook tests.

Fixtures include mocks for the automation page, browser and launcher, a
controllable clock, an in-memory key-value store, test configuration and
the reservation site definition.
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from courtbook.core.protocols import AutomationBrowser, AutomationPage
from courtbook.core.storage import MemoryKeyValueStore
from courtbook.services.sfrec import SiteConfig, sf_rec_park
from courtbook.utils.config import AppConfig

TODAY = date(2025, 7, 28)

SLOT_PANEL_TEXT = "Tennis\n8:00 AM\n10:00 AM tennis\nDuration"


class FakeClock:
    """Callable clock whose time only moves when advanced."""

    def __init__(self, start: float = 1_750_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Controllable clock starting at a fixed Unix time."""
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> MemoryKeyValueStore:
    """In-memory key-value store driven by the fake clock."""
    return MemoryKeyValueStore(clock=clock)


@pytest.fixture
def mock_page() -> MagicMock:
    """Mock automation page.

    Every async method is an AsyncMock. The slot panel reads two open
    slots and every visibility check succeeds.

    Returns:
        MagicMock: A mock page conforming to AutomationPage.
    """
    page = MagicMock(spec=AutomationPage)
    page.navigate = AsyncMock()
    page.click = AsyncMock()
    page.fill = AsyncMock()
    page.type = AsyncMock()
    page.wait_for = AsyncMock()
    page.read_text = AsyncMock(return_value=SLOT_PANEL_TEXT)
    page.is_visible = AsyncMock(return_value=True)
    page.pause = AsyncMock()
    page.title = AsyncMock(return_value="Example Domain")
    page.set_default_timeout = MagicMock()
    page.close = AsyncMock()
    return page


@pytest.fixture
def mock_browser(mock_page: MagicMock) -> MagicMock:
    """Mock automation browser that opens mock_page."""
    browser = MagicMock(spec=AutomationBrowser)
    browser.new_page = AsyncMock(return_value=mock_page)
    browser.pages = AsyncMock(return_value=[mock_page])
    browser.close = AsyncMock()
    return browser


@pytest.fixture
def launcher(mock_browser: MagicMock) -> AsyncMock:
    """Launcher returning mock_browser."""
    return AsyncMock(return_value=mock_browser)


@pytest.fixture
def app_config() -> AppConfig:
    """AppConfig with test-appropriate settings."""
    return AppConfig(
        site_email="operator@example.com",
        site_password="hunter2",
        authorized_emails=["alice@example.com"],
        browser_endpoint="ws://browser.test/devtools",
        page_timeout=1000,
        navigation_timeout=1000,
        element_timeout=500,
        confirm_timeout=2000,
    )


@pytest.fixture
def site() -> SiteConfig:
    """SF Rec & Park site definition."""
    return sf_rec_park()
