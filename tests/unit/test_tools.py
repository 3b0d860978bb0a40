"""Unit tests for the tool facade.

Tests cover:
- Authorization gating of booking tools
- Identity assertion checks
- Tool text for booking, history and auth status
- Error to text conversion
- Browser diagnostic
- build_facade wiring
"""

import json
from datetime import date
from unittest.mock import AsyncMock

import pytest

from courtbook.core.auth import AuthorizationStore
from courtbook.core.availability import AvailabilityQuery
from courtbook.core.booking import BookingEngine
from courtbook.core.protocols import BookingRecord
from courtbook.core.records import BookingRecordStore
from courtbook.core.session import AutomationSessionManager
from courtbook.core.storage import MemoryKeyValueStore, RedisKeyValueStore
from courtbook.core.summarizer import ClaudeSummarizer
from courtbook.core.tools import ToolFacade, build_facade
from courtbook.utils.exceptions import AuthorizationError, BrowserUnavailableError

TODAY = date(2025, 7, 28)


@pytest.fixture
def facade(memory_store, launcher, site, app_config, clock) -> ToolFacade:
    sessions = AutomationSessionManager(launcher, clock=clock)
    records = BookingRecordStore(memory_store)
    return ToolFacade(
        config=app_config,
        store=memory_store,
        authorizations=AuthorizationStore(memory_store, clock=clock),
        records=records,
        sessions=sessions,
        availability=AvailabilityQuery(
            sessions, site, app_config, today=lambda: TODAY
        ),
        booking=BookingEngine(
            sessions, records, site, app_config, today=lambda: TODAY, clock=clock
        ),
        launcher=launcher,
        site=site,
        today=lambda: TODAY,
    )


async def sign_in(facade: ToolFacade) -> None:
    await facade.authenticate("user-1", "alice@example.com", verified=True)


class TestAuthenticate:
    """Tests for identity assertions."""

    @pytest.mark.asyncio
    async def test_allow_listed_email_is_issued(self, facade) -> None:
        record = await facade.authenticate("user-1", "alice@example.com", True)

        assert record.subject_email == "alice@example.com"
        assert await facade.authorizations.current() == record

    @pytest.mark.asyncio
    async def test_allow_list_ignores_case(self, facade) -> None:
        record = await facade.authenticate("user-1", "Alice@Example.com", True)
        assert record.subject_id == "user-1"

    @pytest.mark.asyncio
    async def test_unverified_email_rejected(self, facade) -> None:
        with pytest.raises(AuthorizationError, match="email not verified"):
            await facade.authenticate("user-1", "alice@example.com", False)

        assert await facade.authorizations.current() is None

    @pytest.mark.asyncio
    async def test_unknown_email_rejected(self, facade) -> None:
        with pytest.raises(AuthorizationError, match="Unauthorized user: eve@"):
            await facade.authenticate("user-2", "eve@example.com", True)


class TestGating:
    """Tests for booking tools without a fresh authorization."""

    @pytest.mark.asyncio
    async def test_start_booking_requires_auth(self, facade, launcher) -> None:
        text = await facade.start_booking("DuPont", "8am", "2025-07-29")

        assert text.startswith("AUTHENTICATION REQUIRED")
        assert facade.config.auth_url in text
        assert "alice@example.com" in text
        launcher.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_submit_code_requires_auth(self, facade) -> None:
        text = await facade.submit_verification_code("123456")
        assert text.startswith("AUTHENTICATION REQUIRED")

    @pytest.mark.asyncio
    async def test_history_requires_auth(self, facade) -> None:
        text = await facade.list_booking_history()
        assert text.startswith("AUTHENTICATION REQUIRED")

    @pytest.mark.asyncio
    async def test_expired_authorization_is_rejected(self, facade, clock) -> None:
        await sign_in(facade)
        clock.advance(3600)

        text = await facade.list_booking_history()

        assert text.startswith("AUTHENTICATION REQUIRED")

    @pytest.mark.asyncio
    async def test_check_availability_is_public(self, facade) -> None:
        text = await facade.check_availability(date="2025-07-29", court="DuPont")
        assert text.startswith("DuPont has 2 available time slots")


class TestBookingTools:
    """Tests for start_booking and submit_verification_code text."""

    @pytest.mark.asyncio
    async def test_start_booking_reports_code_request(self, facade) -> None:
        await sign_in(facade)

        text = await facade.start_booking("DuPont", "8am", "2025-07-29")

        assert text.startswith("SMS CODE REQUESTED")
        assert "Authenticated as: alice@example.com" in text
        assert "Time: 8:00 AM" in text
        assert 'submit_verification_code({"code": "YOUR_SMS_CODE"})' in text

    @pytest.mark.asyncio
    async def test_start_booking_error_becomes_text(self, facade) -> None:
        await sign_in(facade)

        text = await facade.start_booking("DuPont", "9:00 PM", "2025-07-29")

        assert text.startswith("Booking failed: 9:00 PM not available")

    @pytest.mark.asyncio
    async def test_start_booking_bad_time(self, facade) -> None:
        await sign_in(facade)

        text = await facade.start_booking("DuPont", "whenever", "2025-07-29")

        assert text.startswith("Booking failed:")

    @pytest.mark.asyncio
    async def test_submit_code_completes_booking(self, facade) -> None:
        await sign_in(facade)
        await facade.start_booking("DuPont", "8am", "2025-07-29")

        text = await facade.submit_verification_code("123456")

        assert text.startswith("BOOKING COMPLETED")
        assert "Code 123456 accepted" in text
        assert "DuPont is booked at 8:00 AM on 2025-07-29" in text

    @pytest.mark.asyncio
    async def test_submit_code_timeout_is_unknown_outcome(
        self, facade, mock_page, site
    ) -> None:
        await sign_in(facade)
        await facade.start_booking("DuPont", "8am", "2025-07-29")

        async def visible(selector, timeout=1000):
            return selector == site.selectors.verification_input

        mock_page.is_visible.side_effect = visible

        text = await facade.submit_verification_code("123456")

        assert text.startswith("Outcome unknown: Booking timeout")

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_text(self, facade) -> None:
        await sign_in(facade)
        facade.booking.submit_code = AsyncMock(side_effect=RuntimeError("boom"))

        text = await facade.submit_verification_code("123456")

        assert text == "Error: boom"


class TestHistory:
    """Tests for list_booking_history."""

    @pytest.mark.asyncio
    async def test_no_bookings(self, facade) -> None:
        await sign_in(facade)

        text = await facade.list_booking_history()

        assert "Found 0 bookings in the last 30 days" in text
        assert text.endswith("No bookings found in this time period.")

    @pytest.mark.asyncio
    async def test_lists_own_bookings(self, facade, clock) -> None:
        await sign_in(facade)
        await facade.records.save(
            BookingRecord(
                "DuPont", "8:00 AM", "2025-07-27", "alice@example.com", clock.now
            )
        )
        await facade.records.save(
            BookingRecord(
                "Moscone", "9:00 AM", "2025-07-26", "bob@example.com", clock.now
            )
        )

        text = await facade.list_booking_history(days=7)

        assert "Found 1 bookings in the last 7 days" in text
        assert "2025-07-27 - DuPont at 8:00 AM (completed)" in text
        details = json.loads(text.split("Detailed data:\n", 1)[1])
        assert details[0]["court"] == "DuPont"
        assert "bookedAt" in details[0]

    @pytest.mark.asyncio
    async def test_days_must_be_positive(self, facade) -> None:
        await sign_in(facade)

        text = await facade.list_booking_history(days=0)

        assert text == "Error getting booking history: days must be at least 1"


class TestAuthStatus:
    """Tests for auth_status and get_auth_url."""

    @pytest.mark.asyncio
    async def test_not_authenticated(self, facade) -> None:
        text = await facade.auth_status()

        assert text.startswith("NOT AUTHENTICATED")
        assert "- start_booking (book courts)" in text
        assert "Authorized users: alice@example.com" in text

    @pytest.mark.asyncio
    async def test_authenticated(self, facade) -> None:
        await sign_in(facade)

        text = await facade.auth_status()

        assert text.startswith("AUTHENTICATED")
        assert "User: alice@example.com" in text
        assert "ID: user-1" in text

    @pytest.mark.asyncio
    async def test_auth_url(self, facade) -> None:
        text = await facade.get_auth_url()

        assert text.startswith("AUTHENTICATION URL")
        assert facade.config.auth_url in text

    @pytest.mark.asyncio
    async def test_no_authorized_users(self, facade) -> None:
        facade.config.authorized_emails = []

        text = await facade.get_auth_url()

        assert "Authorized users: none configured" in text


class TestDiagnostic:
    """Tests for the browser diagnostic."""

    @pytest.mark.asyncio
    async def test_success(self, facade, mock_browser, mock_page, site) -> None:
        report = json.loads(await facade.diagnostic())

        assert report["success"] is True
        assert report["testPageTitle"] == "Example Domain"
        assert report["endpoint"] == "ws://browser.test/devtools"
        mock_page.navigate.assert_awaited_once()
        assert mock_page.navigate.await_args.args[0] == site.diagnostic_url
        mock_browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure(self, facade) -> None:
        facade.launcher = AsyncMock(
            side_effect=BrowserUnavailableError("connection refused")
        )

        report = json.loads(await facade.diagnostic())

        assert report["success"] is False
        assert report["error"] == "connection refused"
        assert report["errorType"] == "BrowserUnavailableError"
        assert "COURTBOOK_BROWSER_ENDPOINT" in report["fix"]

    @pytest.mark.asyncio
    async def test_does_not_touch_shared_session(self, facade) -> None:
        await facade.diagnostic()
        assert facade.sessions.handle is None


class TestShutdown:
    """Tests for shutdown."""

    @pytest.mark.asyncio
    async def test_tears_down_session(self, facade, mock_browser) -> None:
        await facade.check_availability(date="2025-07-29")

        await facade.shutdown()

        mock_browser.close.assert_awaited_once()
        assert facade.sessions.handle is None


class TestBuildFacade:
    """Tests for build_facade."""

    def test_memory_store_by_default(self, app_config, launcher) -> None:
        facade = build_facade(app_config, launcher=launcher)

        assert isinstance(facade.store, MemoryKeyValueStore)
        assert facade.availability.summarizer is None
        assert facade.sessions.freshness == 300
        assert facade.authorizations.ttl == 3600

    def test_redis_store_when_configured(self, app_config, launcher) -> None:
        app_config.redis_url = "redis://localhost:6379/0"

        facade = build_facade(app_config, launcher=launcher)

        assert isinstance(facade.store, RedisKeyValueStore)

    def test_claude_summarizer_with_api_key(self, app_config, launcher) -> None:
        app_config.anthropic_api_key = "test-key"

        facade = build_facade(app_config, launcher=launcher)

        assert isinstance(facade.availability.summarizer, ClaudeSummarizer)

    def test_collaborators_share_session(self, app_config, launcher) -> None:
        facade = build_facade(app_config, launcher=launcher)

        assert facade.availability.session is facade.sessions
        assert facade.booking.session is facade.sessions
