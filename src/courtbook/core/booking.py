"""Two-phase court booking.

A booking runs until the site has texted a verification code, then
suspends with its page kept open. The caller resumes it later by
submitting the code; the page is found again and the booking completed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from courtbook.core.dates import (
    is_time_offered,
    months_ahead,
    normalize_time,
    resolve_date,
)
from courtbook.core.protocols import (
    AutomationBrowser,
    AutomationPage,
    BookingPhase,
    BookingRecord,
)
from courtbook.core.records import BookingRecordStore
from courtbook.core.session import AutomationSessionManager
from courtbook.core.site import ReservationPage
from courtbook.core.states import BookingStateMachine
from courtbook.services.sfrec import SiteConfig
from courtbook.utils.config import AppConfig
from courtbook.utils.exceptions import (
    BookingInputError,
    ConfigurationError,
    CourtbookError,
    SiteInteractionError,
    SlotUnavailableError,
    VerificationPageNotFound,
    VerificationTimeoutError,
)

logger = logging.getLogger(__name__)

MANUAL_RECOVERY = """No verification page found.

Please:
1. Complete your booking manually until you reach the verification step
2. Click "Send Code"
3. When you get the SMS, submit the code again

The verification page should have an input field for the code."""


@dataclass
class BookingWorkflow:
    """One booking attempt and the page it runs on.

    Attributes:
        court: Court being booked.
        requested_date: ISO play date.
        requested_time: Time as the caller wrote it.
        normalized_time: Time in the site's "H:MM AM/PM" form.
        subject_email: Authorized subject making the booking.
        machine: Step tracking for this attempt.
        page: Automation page retained across the suspend point.
        error: Description of the failure, if the attempt failed.
    """

    court: str
    requested_date: str
    requested_time: str
    normalized_time: str
    subject_email: str
    machine: BookingStateMachine = field(default_factory=BookingStateMachine)
    page: AutomationPage | None = None
    error: str | None = None

    @property
    def phase(self) -> BookingPhase:
        state = self.machine.current_state
        if state == self.machine.completed:
            return BookingPhase.COMPLETED
        if state == self.machine.failed:
            return BookingPhase.FAILED
        if state == self.machine.awaiting_verification:
            return BookingPhase.AWAITING_VERIFICATION
        return BookingPhase.IN_PROGRESS


class BookingEngine:
    """Runs bookings against the reservation site.

    At most one booking waits for a verification code at a time: starting
    and resuming bookings are serialized, and the session is pinned while a
    booking waits so its page survives other callers. Nothing is retried:
    every failure is reported to the caller, and the page of a failed
    attempt is left open.

    Attributes:
        session: Shared automation session manager.
        records: Ledger of completed bookings.
        site: Reservation site definition.
        config: Application configuration (credentials, timeouts).
        today: Callable returning the site's current date.
        clock: Callable returning the current Unix time.
        pending: The booking awaiting its verification code, if any.

    Example:
        >>> workflow = await engine.start("DuPont", "2pm", "2025-07-29", email)
        >>> workflow.phase
        <BookingPhase.AWAITING_VERIFICATION: 2>
        >>> record = await engine.submit_code("123456")
    """

    def __init__(
        self,
        session: AutomationSessionManager,
        records: BookingRecordStore,
        site: SiteConfig,
        config: AppConfig,
        today: Callable[[], date] = date.today,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.session = session
        self.records = records
        self.site = site
        self.config = config
        self.today = today
        self.clock = clock
        self.pending: BookingWorkflow | None = None
        self._lock = asyncio.Lock()

    async def start(
        self,
        court: str,
        time: str,
        date: str | None,
        subject_email: str,
    ) -> BookingWorkflow:
        """Run a booking up to the verification code request.

        Args:
            court: Court name as shown on the site.
            time: Requested start time, e.g. "2pm", "2:00 PM" or "14:00".
            date: "today", "tomorrow", an ISO date, or None for tomorrow.
            subject_email: Email of the authorized subject.

        Returns:
            The workflow, suspended in AWAITING_VERIFICATION.

        Raises:
            ConfigurationError: If site credentials are not configured or
                no automation browser can be acquired.
            BookingInputError: If the time or date cannot be understood.
            SlotUnavailableError: If the time is not offered that day.
            SiteInteractionError: If any other site step fails.
        """
        missing = self.config.missing_site_credentials()
        if missing:
            raise ConfigurationError(
                f"Site credentials not configured: {', '.join(missing)}"
            )

        normalized = normalize_time(time)
        today = self.today()
        target = resolve_date(date, today)
        months_ahead(target, today)

        workflow = BookingWorkflow(
            court=court,
            requested_date=target.isoformat(),
            requested_time=time,
            normalized_time=normalized,
            subject_email=subject_email,
        )
        async with self._lock:
            await self._supersede_pending()
            await self._run_until_code(workflow, target, today)
            logger.info("Verification step reached")
            self.pending = workflow
            self.session.pin()
        return workflow

    async def _run_until_code(
        self, workflow: BookingWorkflow, target: date, today: date
    ) -> None:
        court = workflow.court
        normalized = workflow.normalized_time
        browser = await self.session.ensure_ready()
        workflow.page = await browser.new_page()
        site_page = ReservationPage(workflow.page, self.site, self.config)
        logger.info(
            f"{workflow.subject_email} is booking {court} at {normalized} "
            f"on {workflow.requested_date}"
        )

        try:
            logger.info("1. Connecting and logging in...")
            await site_page.open_entry()
            await site_page.log_in(self.config.site_email, self.config.site_password)
            logger.info("2. Going to court...")
            await site_page.open_court(court)
            workflow.machine.open_site()

            logger.info("3. Selecting date...")
            await site_page.select_date(target, today)
            workflow.machine.select_date()

            logger.info("4. Checking time availability...")
            lines = await site_page.read_slots()
            if not is_time_offered(normalized, lines):
                raise SlotUnavailableError(normalized, lines)
            workflow.machine.verify_slot()

            logger.info("5. Booking time and requesting code...")
            await site_page.choose_slot(normalized)
            await site_page.set_duration()
            await site_page.select_participant()
            await site_page.request_code()
            workflow.machine.request_code()
        except CourtbookError as e:
            self._fail(workflow, e)
            raise
        except Exception as e:
            self._fail(workflow, e)
            raise SiteInteractionError(f"Booking failed: {e}") from e

    async def submit_code(self, code: str) -> BookingRecord | None:
        """Complete the suspended booking with the texted code.

        Args:
            code: Verification code received by SMS.

        Returns:
            The saved booking record, or None when the booking was completed
            on a page other than the pending workflow's own.

        Raises:
            BookingInputError: If the code is empty.
            VerificationPageNotFound: If no open page awaits a code.
            SlotAlreadyReservedError: If the site reports the court taken.
            VerificationTimeoutError: If no outcome appeared in time.
        """
        code = code.strip()
        if not code:
            raise BookingInputError("Verification code is empty")

        async with self._lock:
            return await self._complete(code)

    async def _complete(self, code: str) -> BookingRecord | None:
        workflow = self.pending
        if workflow is not None and not workflow.machine.is_awaiting_verification:
            workflow = None

        browser = await self.session.ensure_ready(allow_stale=True)
        site_page = await self._find_verification_page(browser, workflow)
        if site_page is None:
            if workflow is not None:
                self._fail(workflow, "Verification page no longer open")
            raise VerificationPageNotFound(MANUAL_RECOVERY)
        if workflow is not None and site_page.page is not workflow.page:
            self._fail(workflow, "Verification page no longer open")
            workflow = None

        logger.info("Entering verification code")
        try:
            confirmed = await site_page.confirm_code(code)
        except CourtbookError as e:
            self._fail(workflow, e)
            raise
        except Exception as e:
            self._fail(workflow, e)
            raise SiteInteractionError(f"Confirmation failed: {e}") from e

        if not confirmed:
            error = VerificationTimeoutError(
                "Booking timeout - check the reservation site manually to "
                "verify booking status"
            )
            self._fail(workflow, error)
            raise error

        logger.info("Booking confirmed")
        if workflow is None:
            logger.warning("Booking confirmed without workflow context, not recorded")
            await self._close_page(site_page.page)
            return None

        workflow.machine.confirm()
        self._release(workflow)
        record = BookingRecord(
            court=workflow.court,
            time=workflow.normalized_time,
            date=workflow.requested_date,
            subject_email=workflow.subject_email,
            completed_at=self.clock(),
        )
        try:
            await self.records.save(record)
        except Exception as e:
            logger.warning(f"Booking confirmed but record not saved: {e}")
        await self._close_page(workflow.page)
        return record

    async def _find_verification_page(
        self,
        browser: AutomationBrowser,
        workflow: BookingWorkflow | None,
    ) -> ReservationPage | None:
        if workflow is not None and workflow.page is not None:
            site_page = ReservationPage(workflow.page, self.site, self.config)
            if await site_page.shows_verification_input():
                return site_page

        for page in await browser.pages():
            site_page = ReservationPage(page, self.site, self.config)
            if await site_page.shows_verification_input():
                logger.info("Found verification page among open pages")
                return site_page
        return None

    async def _supersede_pending(self) -> None:
        previous = self.pending
        if previous is None:
            return
        self._release(previous)
        if previous.machine.is_awaiting_verification:
            logger.warning(
                f"Abandoning pending booking of {previous.court} at "
                f"{previous.normalized_time} for a new request"
            )
            self._fail(previous, "Superseded by a new booking request")
            await self._close_page(previous.page)

    def _fail(self, workflow: BookingWorkflow | None, error: Exception | str) -> None:
        if workflow is None:
            return
        workflow.error = str(error)
        if not workflow.machine.current_state.final:
            workflow.machine.fail()
        self._release(workflow)
        logger.error(f"Booking failed at step {workflow.machine.step}: {error}")

    def _release(self, workflow: BookingWorkflow) -> None:
        if self.pending is workflow:
            self.pending = None
            self.session.unpin()

    @staticmethod
    async def _close_page(page: AutomationPage | None) -> None:
        if page is None:
            return
        try:
            await page.close()
        except Exception as e:
            logger.warning(f"Error closing booking page: {e}")
