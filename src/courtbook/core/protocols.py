"""Core protocols and data types for courtbook.

This module defines the foundational types and protocols that all other
components depend on. It includes:
- Enums for automation session state and booking phase
- Data classes for authorization records, booking records and
  availability results
- Protocol definitions for the automation driver, the summarizer and the
  key-value store
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum, auto
from typing import Any, Protocol


class SessionState(Enum):
    """Lifecycle of the single shared automation session."""

    IDLE = auto()
    ACQUIRING = auto()
    READY = auto()
    CLOSING = auto()


class BookingPhase(Enum):
    """Externally visible phase of a booking attempt.

    IN_PROGRESS covers the steps between start and the suspend point.
    """

    IN_PROGRESS = auto()
    AWAITING_VERIFICATION = auto()
    COMPLETED = auto()
    FAILED = auto()


@dataclass(frozen=True)
class AuthorizationRecord:
    """Short-lived proof that an allow-listed subject signed in.

    Attributes:
        subject_id: Identity-provider user id.
        subject_email: Email address asserted by the identity provider.
        verified: Whether the identity provider verified the email.
        issued_at: Unix timestamp (seconds) when the record was issued.
    """

    subject_id: str
    subject_email: str
    verified: bool
    issued_at: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serialisable dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthorizationRecord:
        """Build a record from its stored dictionary form.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If issued_at is not numeric.
        """
        return cls(
            subject_id=str(data["subject_id"]),
            subject_email=str(data["subject_email"]),
            verified=bool(data.get("verified", False)),
            issued_at=float(data["issued_at"]),
        )


@dataclass(frozen=True)
class BookingRecord:
    """A completed booking, stored under its play date.

    Attributes:
        court: Court name as shown on the site.
        time: Normalized slot time, e.g. "2:00 PM".
        date: ISO play date (YYYY-MM-DD), also the storage key.
        subject_email: Email of the subject who made the booking.
        completed_at: Unix timestamp (seconds) of confirmation.
        status: Booking status, "completed" for confirmed bookings.
    """

    court: str
    time: str
    date: str
    subject_email: str
    completed_at: float
    status: str = "completed"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serialisable dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BookingRecord:
        """Build a record from its stored dictionary form."""
        return cls(
            court=str(data["court"]),
            time=str(data["time"]),
            date=str(data["date"]),
            subject_email=str(data["subject_email"]),
            completed_at=float(data["completed_at"]),
            status=str(data.get("status", "completed")),
        )


@dataclass
class AvailabilityResult:
    """Facts read from the site for one court and date.

    Attributes:
        court: The court that was checked.
        date: ISO date that was checked.
        available_times: Slot lines rendered by the site.
        requested_time: The time the caller asked about, if any.
        requested_time_available: Whether that time is offered, None when
            no time was requested.
        error: Error text if the site could not be read.
        summary: Natural-language summary, filled in after the read.
    """

    court: str
    date: str
    available_times: list[str] = field(default_factory=list)
    requested_time: str | None = None
    requested_time_available: bool | None = None
    error: str | None = None
    summary: str = ""

    @property
    def total_slots(self) -> int:
        """Number of slot lines read from the site."""
        return len(self.available_times)


class AutomationPage(Protocol):
    """One page (tab) of the automation browser.

    Selectors use Playwright selector syntax, including the ``text=``,
    ``role=`` and ``xpath=`` engines and ``>>`` chaining.
    """

    async def navigate(self, url: str, timeout: int | None = None) -> None:
        """Navigate to the URL and wait for DOM content."""
        ...

    async def click(self, selector: str, timeout: int | None = None) -> None:
        """Click the first element matching the selector."""
        ...

    async def fill(self, selector: str, value: str) -> None:
        """Replace the value of an input."""
        ...

    async def type(self, selector: str, text: str) -> None:
        """Type text key by key into an input."""
        ...

    async def wait_for(self, selector: str, timeout: int | None = None) -> None:
        """Wait until an element matching the selector is attached."""
        ...

    async def read_text(self, selector: str, timeout: int | None = None) -> str:
        """Return the rendered inner text of the matching element."""
        ...

    async def is_visible(self, selector: str, timeout: int = 1000) -> bool:
        """Return True if a matching element becomes visible in time."""
        ...

    async def pause(self, ms: int) -> None:
        """Let the page settle for a fixed time."""
        ...

    async def title(self) -> str:
        """Return the document title."""
        ...

    def set_default_timeout(self, timeout: int) -> None:
        """Set the default timeout (ms) for subsequent actions."""
        ...

    async def close(self) -> None:
        """Close the page."""
        ...


class AutomationBrowser(Protocol):
    """Handle to one automation browser instance."""

    async def new_page(self) -> AutomationPage:
        """Open a new page."""
        ...

    async def pages(self) -> list[AutomationPage]:
        """Return every open page, oldest first."""
        ...

    async def close(self) -> None:
        """Close the browser connection."""
        ...


class Summarizer(Protocol):
    """Turns availability facts into conversational text."""

    async def summarize(self, facts: AvailabilityResult) -> str:
        """Return a natural-language summary of the facts."""
        ...


class KeyValueStore(Protocol):
    """String key-value storage with optional per-key expiry."""

    async def get(self, key: str) -> str | None:
        """Return the value for key, or None if absent or expired."""
        ...

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store value under key, expiring after ttl seconds if given."""
        ...

    async def list_keys(self, prefix: str) -> list[str]:
        """Return all live keys starting with prefix."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...
