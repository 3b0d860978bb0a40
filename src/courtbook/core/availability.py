"""Read-only court availability checks."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from courtbook.core.dates import is_time_offered, resolve_date
from courtbook.core.protocols import AvailabilityResult, Summarizer
from courtbook.core.session import AutomationSessionManager
from courtbook.core.site import ReservationPage
from courtbook.core.summarizer import fallback_summary
from courtbook.services.sfrec import SiteConfig
from courtbook.utils.config import AppConfig
from courtbook.utils.exceptions import CourtbookError

logger = logging.getLogger(__name__)


class AvailabilityQuery:
    """Reads the slot list of one court on one day.

    Uses the shared automation session but opens its own page, which is
    closed when the check ends. No sign-in is needed to read slots.

    Attributes:
        session: Shared automation session manager.
        site: Reservation site definition.
        config: Application configuration (default court, timeouts).
        summarizer: Optional generator of conversational summaries.
        today: Callable returning the site's current date.
    """

    def __init__(
        self,
        session: AutomationSessionManager,
        site: SiteConfig,
        config: AppConfig,
        summarizer: Summarizer | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.session = session
        self.site = site
        self.config = config
        self.summarizer = summarizer
        self.today = today

    async def check(
        self,
        date: str | None = None,
        court: str | None = None,
        time: str | None = None,
    ) -> AvailabilityResult:
        """Check a court's open slots and summarize them.

        Args:
            date: "today", "tomorrow", an ISO date, or None for tomorrow.
            court: Court name; the configured default when None.
            time: Optional time to look for among the slots.

        Returns:
            Availability facts with the summary filled in. Site failures are
            reported through ``error`` rather than raised.

        Raises:
            BookingInputError: If the date cannot be understood.
            BrowserUnavailableError: If no automation browser can be acquired.
        """
        today = self.today()
        target = resolve_date(date, today)
        court = court or self.config.default_court
        result = AvailabilityResult(
            court=court, date=target.isoformat(), requested_time=time
        )

        browser = await self.session.ensure_ready()
        page = await browser.new_page()
        logger.info(f"Checking availability for {court} on {result.date}")
        try:
            site_page = ReservationPage(page, self.site, self.config)
            await site_page.open_entry()
            await site_page.open_court(court)
            await site_page.select_date(target, today)
            result.available_times = await site_page.read_slots()
            if time:
                result.requested_time_available = is_time_offered(
                    time, result.available_times
                )
        except CourtbookError as e:
            logger.warning(f"Availability check failed: {e}")
            result.error = str(e)
        finally:
            await self._close_page(page)

        result.summary = await self._summarize(result)
        return result

    async def _summarize(self, result: AvailabilityResult) -> str:
        if self.summarizer is None:
            return fallback_summary(result)
        try:
            text = await self.summarizer.summarize(result)
        except Exception as e:
            logger.warning(f"Summary generation failed, using template: {e}")
            return fallback_summary(result)
        return text.strip() or fallback_summary(result)

    @staticmethod
    async def _close_page(page) -> None:
        try:
            await page.close()
        except Exception as e:
            logger.warning(f"Error closing availability page: {e}")
