"""Tool facade: the operations exposed to tool-calling clients.

Every tool returns human-readable text. Errors never escape a tool; they
are turned into text here. Booking tools are gated on a fresh
authorization record.
"""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from typing import Any

from courtbook.core.auth import AuthorizationStore
from courtbook.core.availability import AvailabilityQuery
from courtbook.core.booking import BookingEngine
from courtbook.core.browser import browser_launcher
from courtbook.core.dates import today_in
from courtbook.core.protocols import (
    AuthorizationRecord,
    AutomationBrowser,
    KeyValueStore,
    Summarizer,
)
from courtbook.core.records import BookingRecordStore
from courtbook.core.session import AutomationSessionManager
from courtbook.core.storage import MemoryKeyValueStore, RedisKeyValueStore
from courtbook.core.summarizer import ClaudeSummarizer
from courtbook.services.sfrec import SiteConfig, sf_rec_park
from courtbook.utils.config import AppConfig
from courtbook.utils.exceptions import (
    AuthorizationError,
    BookingInputError,
    CourtbookError,
    VerificationTimeoutError,
)

logger = logging.getLogger(__name__)

PUBLIC_TOOLS = {
    "check_availability": "check court availability",
    "diagnostic": "browser diagnostic",
    "auth_status": "check authentication status",
    "get_auth_url": "get authentication link",
}

GATED_TOOLS = {
    "start_booking": "book courts",
    "submit_verification_code": "complete bookings",
    "list_booking_history": "view your bookings",
}


def tool_list(tools: dict[str, str]) -> str:
    return "\n".join(f"- {name} ({purpose})" for name, purpose in tools.items())


def _as_text(prefix: str) -> Callable:
    """Turn errors raised by a tool into user-facing text."""

    def decorator(func: Callable[..., Awaitable[str]]) -> Callable[..., Awaitable[str]]:
        @functools.wraps(func)
        async def wrapper(self: ToolFacade, *args: Any, **kwargs: Any) -> str:
            try:
                return await func(self, *args, **kwargs)
            except AuthorizationError as e:
                return str(e)
            except VerificationTimeoutError as e:
                return f"Outcome unknown: {e}"
            except CourtbookError as e:
                logger.warning(f"{func.__name__} failed: {e}")
                return f"{prefix}: {e}"
            except Exception as e:
                logger.exception(f"Unexpected error in {func.__name__}")
                return f"{prefix}: {e}"

        return wrapper

    return decorator


class ToolFacade:
    """Maps each tool onto the authorization store, session and workflows.

    Attributes:
        config: Application configuration.
        store: Key-value backend shared by authorizations and bookings.
        authorizations: Authorization record store.
        records: Completed-booking ledger.
        sessions: Shared automation session manager.
        availability: Availability query.
        booking: Booking engine.
        launcher: Browser launcher, used directly by the diagnostic.
        site: Reservation site definition.
        today: Callable returning the site's current date.
    """

    def __init__(
        self,
        config: AppConfig,
        store: KeyValueStore,
        authorizations: AuthorizationStore,
        records: BookingRecordStore,
        sessions: AutomationSessionManager,
        availability: AvailabilityQuery,
        booking: BookingEngine,
        launcher: Callable[[], Awaitable[AutomationBrowser]],
        site: SiteConfig,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.config = config
        self.store = store
        self.authorizations = authorizations
        self.records = records
        self.sessions = sessions
        self.availability = availability
        self.booking = booking
        self.launcher = launcher
        self.site = site
        self.today = today

    def _authorized_users(self, empty: str) -> str:
        return ", ".join(self.config.authorized_emails) or empty

    def auth_required_message(self) -> str:
        return f"""AUTHENTICATION REQUIRED

This booking operation requires authentication.

Visit: {self.config.auth_url}

Steps:
1. Click or visit the authentication URL above
2. Sign in using an authorized email
3. Return here and try the booking again

Authorized users: {self._authorized_users("No authorized users configured")}"""

    async def _require_authorization(self) -> AuthorizationRecord:
        record = await self.authorizations.current()
        if record is None:
            raise AuthorizationError(self.auth_required_message())
        return record

    async def authenticate(
        self, subject_id: str, subject_email: str, verified: bool
    ) -> AuthorizationRecord:
        """Register an identity assertion from the sign-in front end.

        Raises:
            AuthorizationError: If the email is unverified or not allowed.
            StorageError: If the record cannot be written.
        """
        if not verified:
            logger.warning(f"Rejected unverified identity: {subject_email}")
            raise AuthorizationError(
                f"Unauthorized user: {subject_email} (email not verified)"
            )
        if not self.config.is_authorized_email(subject_email):
            logger.warning(f"Unauthorized user: {subject_email}")
            raise AuthorizationError(f"Unauthorized user: {subject_email}")
        return await self.authorizations.issue(subject_id, subject_email)

    @_as_text("Error checking availability")
    async def check_availability(
        self,
        date: str | None = None,
        court: str | None = None,
        time: str | None = None,
    ) -> str:
        result = await self.availability.check(date=date, court=court, time=time)
        return result.summary

    @_as_text("Booking failed")
    async def start_booking(
        self, court: str, time: str, date: str | None = None
    ) -> str:
        record = await self._require_authorization()
        workflow = await self.booking.start(court, time, date, record.subject_email)
        return f"""SMS CODE REQUESTED

Authenticated as: {record.subject_email}
Court: {workflow.court}
Time: {workflow.normalized_time}
Date: {workflow.requested_date}

A verification code has been sent to the phone on the booking account.

When you receive it, run:
submit_verification_code({{"code": "YOUR_SMS_CODE"}})

The browser is waiting at the verification step."""

    @_as_text("Error")
    async def submit_verification_code(self, code: str) -> str:
        record = await self._require_authorization()
        booking = await self.booking.submit_code(code)
        lines = [
            "BOOKING COMPLETED",
            "",
            f"Completed by: {record.subject_email}",
            f"Code {code.strip()} accepted",
        ]
        if booking is not None:
            lines.append(
                f"{booking.court} is booked at {booking.time} on {booking.date}"
            )
        else:
            lines.append("Your tennis court is booked")
        return "\n".join(lines)

    @_as_text("Error getting booking history")
    async def list_booking_history(self, days: int | None = None) -> str:
        record = await self._require_authorization()
        days = self.config.history_days if days is None else days
        if days < 1:
            raise BookingInputError("days must be at least 1")
        bookings = await self.records.history(
            record.subject_email, days, today=self.today()
        )

        text = (
            f"Booking History for {record.subject_email}\n\n"
            f"Found {len(bookings)} bookings in the last {days} days:\n\n"
        )
        if not bookings:
            return text + "No bookings found in this time period."
        text += "\n".join(
            f"{b.date} - {b.court} at {b.time} ({b.status})" for b in bookings
        )
        details = [
            {
                "date": b.date,
                "court": b.court,
                "time": b.time,
                "status": b.status,
                "bookedAt": datetime.fromtimestamp(b.completed_at).isoformat(
                    timespec="seconds"
                ),
            }
            for b in bookings
        ]
        return f"{text}\n\nDetailed data:\n{json.dumps(details, indent=2)}"

    @_as_text("Auth status check failed")
    async def auth_status(self) -> str:
        record = await self.authorizations.current()
        if record is not None:
            return (
                "AUTHENTICATED\n\n"
                f"User: {record.subject_email}\n"
                f"ID: {record.subject_id}\n"
                f"Email Verified: {record.verified}\n\n"
                f"You can now use:\n{tool_list(GATED_TOOLS)}\n\n"
                f"Anyone can still use:\n{tool_list(PUBLIC_TOOLS)}"
            )
        return (
            "NOT AUTHENTICATED\n\n"
            f"Visit: {self.config.auth_url}\n\n"
            f"Available without authentication:\n{tool_list(PUBLIC_TOOLS)}\n\n"
            f"Requires authentication:\n{tool_list(GATED_TOOLS)}\n\n"
            f"Authorized users: {self._authorized_users('none configured')}"
        )

    async def get_auth_url(self) -> str:
        return f"""AUTHENTICATION URL

Visit this link to authenticate: {self.config.auth_url}

This will:
1. Sign you in with the identity provider
2. Verify you're an authorized user
3. Register your session with this server
4. Allow you to use protected booking tools

Authorized users: {self._authorized_users("none configured")}

After authentication, return here and try your booking command again."""

    async def diagnostic(self) -> str:
        """Open a throwaway browser, load a test page and report as JSON."""
        endpoint = self.config.browser_endpoint or (
            "local Chromium" if self.config.local_browser else None
        )
        try:
            browser = await self.launcher()
            try:
                page = await browser.new_page()
                await page.navigate(
                    self.site.diagnostic_url, timeout=self.config.navigation_timeout
                )
                title = await page.title()
            finally:
                await browser.close()
        except Exception as e:
            logger.warning(f"Browser diagnostic failed: {e}")
            return json.dumps(
                {
                    "success": False,
                    "error": str(e),
                    "errorType": type(e).__name__,
                    "endpoint": endpoint,
                    "fix": (
                        "Set COURTBOOK_BROWSER_ENDPOINT to a reachable CDP endpoint "
                        "or COURTBOOK_LOCAL_BROWSER=1"
                    ),
                },
                indent=2,
            )
        return json.dumps(
            {
                "success": True,
                "message": "Browser is working correctly!",
                "testPageTitle": title,
                "endpoint": endpoint,
            },
            indent=2,
        )

    async def shutdown(self) -> None:
        """Release the automation session and storage connections."""
        await self.sessions.teardown()
        await self.store.close()


def build_facade(
    config: AppConfig,
    store: KeyValueStore | None = None,
    summarizer: Summarizer | None = None,
    launcher: Callable[[], Awaitable[AutomationBrowser]] | None = None,
    site: SiteConfig | None = None,
) -> ToolFacade:
    """Wire the facade and its collaborators from configuration.

    Args:
        config: Application configuration.
        store: Key-value backend; Redis when configured, else in-memory.
        summarizer: Availability summarizer; Claude when an API key is set.
        launcher: Browser launcher; Playwright by default.
        site: Reservation site; SF Rec & Park by default.
    """
    if store is None:
        if config.redis_url:
            store = RedisKeyValueStore.from_url(config.redis_url)
        else:
            store = MemoryKeyValueStore()
    if summarizer is None and config.anthropic_api_key:
        summarizer = ClaudeSummarizer(
            api_key=config.anthropic_api_key, model=config.summary_model
        )
    launcher = launcher or browser_launcher(config)
    site = site or sf_rec_park()
    today = functools.partial(today_in, config.timezone)

    sessions = AutomationSessionManager(launcher, freshness=config.session_freshness)
    records = BookingRecordStore(store)
    return ToolFacade(
        config=config,
        store=store,
        authorizations=AuthorizationStore(store, ttl=config.auth_ttl),
        records=records,
        sessions=sessions,
        availability=AvailabilityQuery(
            sessions, site, config, summarizer=summarizer, today=today
        ),
        booking=BookingEngine(sessions, records, site, config, today=today),
        launcher=launcher,
        site=site,
        today=today,
    )
