"""Lifecycle of the single shared automation browser.

The automation backend allows one browser per process, and opening one is
slow, so every availability check and booking shares one handle. The
manager hands out that handle while it is young and replaces it once it
has aged past the freshness window.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable

from courtbook.core.protocols import AutomationBrowser, SessionState
from courtbook.utils.exceptions import BrowserUnavailableError, CourtbookError

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS = 300


class AutomationSessionManager:
    """Owns the one automation handle and its acquisition.

    Staleness is evaluated lazily on each ensure_ready() call; nothing runs
    in the background. At most one acquisition is in flight: callers that
    arrive while the browser is being opened wait on that same attempt and
    receive its handle or its exception. A pinned handle is reused past
    the freshness window until unpinned.

    Attributes:
        freshness: Seconds a handle may be reused after acquisition.
        clock: Monotonic clock used to age the handle.

    Example:
        >>> sessions = AutomationSessionManager(browser_launcher(config))
        >>> browser = await sessions.ensure_ready()
        >>> page = await browser.new_page()
    """

    def __init__(
        self,
        launcher: Callable[[], Awaitable[AutomationBrowser]],
        freshness: int = DEFAULT_FRESHNESS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._launcher = launcher
        self.freshness = freshness
        self.clock = clock
        self._handle: AutomationBrowser | None = None
        self._acquired_at: float | None = None
        self._state = SessionState.IDLE
        self._inflight: asyncio.Task[AutomationBrowser] | None = None
        self._pinned = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def handle(self) -> AutomationBrowser | None:
        return self._handle

    @property
    def acquired_at(self) -> float | None:
        return self._acquired_at

    @property
    def pinned(self) -> bool:
        return self._pinned

    def pin(self) -> None:
        """Keep the current handle past its freshness window.

        Set while a page in the handle must survive, such as a booking
        waiting for its verification code.
        """
        self._pinned = True

    def unpin(self) -> None:
        self._pinned = False

    def is_fresh(self) -> bool:
        """True if a handle exists and is younger than the freshness window."""
        if self._handle is None or self._acquired_at is None:
            return False
        return self.clock() - self._acquired_at < self.freshness

    async def ensure_ready(self, *, allow_stale: bool = False) -> AutomationBrowser:
        """Return a usable automation handle, acquiring one if needed.

        Args:
            allow_stale: Return the existing handle regardless of its age.
                Used when resuming a suspended booking, whose page lives in
                the current handle.

        Returns:
            The shared automation handle.

        Raises:
            BrowserUnavailableError: If the browser cannot be acquired.
        """
        if self._handle is not None and (
            allow_stale or self._pinned or self.is_fresh()
        ):
            return self._handle

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._acquire())
        # Shielded so one cancelled caller does not abort the shared attempt.
        return await asyncio.shield(self._inflight)

    async def teardown(self) -> None:
        """Close the handle if present and reset to IDLE.

        Waits for an acquisition in flight so its browser is closed too.
        Safe to call repeatedly. Close errors are logged, not raised.
        """
        if self._inflight is not None:
            with contextlib.suppress(Exception):
                await asyncio.shield(self._inflight)
        self._pinned = False
        if self._handle is None:
            self._state = SessionState.IDLE
            return
        await self._close_handle()

    async def _acquire(self) -> AutomationBrowser:
        try:
            if self._handle is not None:
                logger.info("Automation session is stale, replacing it")
                await self._close_handle()

            self._state = SessionState.ACQUIRING
            logger.info("Acquiring automation browser")
            try:
                handle = await self._launcher()
            except CourtbookError:
                self._state = SessionState.IDLE
                raise
            except Exception as e:
                self._state = SessionState.IDLE
                raise BrowserUnavailableError(
                    f"Failed to acquire automation browser: {e}"
                ) from e

            self._handle = handle
            self._acquired_at = self.clock()
            self._state = SessionState.READY
            logger.info("Automation browser ready")
            return handle
        finally:
            self._inflight = None

    async def _close_handle(self) -> None:
        handle = self._handle
        self._state = SessionState.CLOSING
        self._handle = None
        self._acquired_at = None
        try:
            if handle is not None:
                await handle.close()
        except Exception as e:
            logger.warning(f"Error closing automation browser: {e}")
        finally:
            self._state = SessionState.IDLE
