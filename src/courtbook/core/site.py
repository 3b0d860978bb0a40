"""Scripted steps on the reservation site.

ReservationPage drives one automation page through the site's fixed
layout. Availability checks and bookings share the navigation steps; only
bookings log in and go past the slot list.
"""

from __future__ import annotations

import logging
from datetime import date

from courtbook.core.dates import day_selector, months_ahead, slot_lines
from courtbook.core.protocols import AutomationPage
from courtbook.services.sfrec import SiteConfig
from courtbook.utils.config import AppConfig
from courtbook.utils.exceptions import SlotAlreadyReservedError

logger = logging.getLogger(__name__)


class ReservationPage:
    """One page of the reservation site and the steps performed on it.

    Attributes:
        page: The automation page being driven.
        site: Selectors and URLs of the reservation site.
        config: Timeouts for navigation, elements and confirmation.
    """

    # Settle delays (ms) after actions that trigger client-side rendering.
    AFTER_LOAD = 2000
    AFTER_LOGIN = 3000
    AFTER_COURT = 2000
    AFTER_PICKER = 1000
    AFTER_MONTH = 500
    AFTER_DAY = 1500
    AFTER_SEND_CODE = 2000

    def __init__(self, page: AutomationPage, site: SiteConfig, config: AppConfig):
        self.page = page
        self.site = site
        self.config = config

    @property
    def selectors(self):
        return self.site.selectors

    async def open_entry(self) -> None:
        """Load the site's landing page."""
        self.page.set_default_timeout(self.config.page_timeout)
        await self.page.navigate(
            self.site.entry_url, timeout=self.config.navigation_timeout
        )
        await self.page.pause(self.AFTER_LOAD)

    async def log_in(self, email: str, password: str) -> None:
        """Sign in with the operator's site credentials."""
        s = self.selectors
        await self.page.wait_for(s.login_link, timeout=self.config.element_timeout)
        await self.page.click(s.login_link)
        await self.page.wait_for(s.email_input, timeout=self.config.element_timeout)
        await self.page.fill(s.email_input, email)
        await self.page.fill(s.password_input, password)
        await self.page.click(s.login_submit)
        await self.page.pause(self.AFTER_LOGIN)

    async def open_court(self, court: str) -> None:
        """Open the reservation page of a court."""
        link = self.site.court_link(court)
        await self.page.wait_for(link, timeout=self.config.element_timeout)
        await self.page.click(link)
        await self.page.wait_for(
            self.selectors.court_page_marker, timeout=self.config.element_timeout
        )
        await self.page.pause(self.AFTER_COURT)

    async def select_date(self, target: date, today: date) -> None:
        """Pick a day in the date picker.

        The picker opens on the current month; one "next month" click is
        made per month between today and the target.

        Raises:
            BookingInputError: If the target lies in a past month.
        """
        s = self.selectors
        clicks = months_ahead(target, today)
        await self.page.click(s.date_input)
        await self.page.wait_for(s.date_picker, timeout=self.config.element_timeout)
        await self.page.pause(self.AFTER_PICKER)
        for _ in range(clicks):
            await self.page.click(s.next_month)
            await self.page.pause(self.AFTER_MONTH)
        logger.info(f"Selecting day {target.day} ({clicks} month(s) ahead)")
        await self.page.click(f"{day_selector(target.day)} >> nth=0")
        await self.page.pause(self.AFTER_DAY)

    async def read_slots(self) -> list[str]:
        """Wait for the slot list and return its lines that carry a time."""
        s = self.selectors
        await self.page.wait_for(s.slots_loaded, timeout=self.config.element_timeout)
        raw = await self.page.read_text(
            s.slot_panel, timeout=self.config.element_timeout
        )
        return slot_lines(raw)

    async def choose_slot(self, normalized_time: str) -> None:
        await self.page.click(self.site.slot_button(normalized_time))

    async def set_duration(self) -> None:
        """Open the duration menu and take the first enabled option."""
        s = self.selectors
        await self.page.click(s.duration_button)
        await self.page.wait_for(s.duration_loaded, timeout=self.config.element_timeout)
        await self.page.click(s.duration_option)

    async def select_participant(self) -> None:
        await self.page.click(self.selectors.participant_button)
        await self.page.click(self.selectors.participant_option)

    async def request_code(self) -> None:
        """Book the slot and ask the site to text a verification code."""
        s = self.selectors
        await self.page.click(s.book_button)
        await self.page.click(s.send_code)
        await self.page.pause(self.AFTER_SEND_CODE)
        await self.page.wait_for(
            s.verification_input, timeout=self.config.element_timeout
        )

    async def shows_verification_input(self) -> bool:
        return await self.page.is_visible(self.selectors.verification_input)

    async def confirm_code(self, code: str) -> bool:
        """Enter the code and wait for the site's verdict.

        Returns:
            True if the success marker appeared within the confirmation
            timeout, False if nothing conclusive appeared.

        Raises:
            SlotAlreadyReservedError: If the site reports the court taken.
        """
        s = self.selectors
        await self.page.type(s.verification_input, code)
        self.page.set_default_timeout(self.config.confirm_timeout)
        await self.page.click(s.confirm_button)

        if await self.page.is_visible(
            s.success_marker, timeout=self.config.confirm_timeout
        ):
            return True
        if self.site.already_reserved_text and await self.page.is_visible(
            f"text={self.site.already_reserved_text}"
        ):
            raise SlotAlreadyReservedError(self.site.already_reserved_text)
        return False
