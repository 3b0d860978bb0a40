"""Date and time-slot helpers for the booking calendar."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from courtbook.utils.exceptions import BookingInputError

logger = logging.getLogger(__name__)

_TWELVE_HOUR = re.compile(
    r"^\s*(\d{1,2})(?::(\d{2}))?\s*([ap])\.?\s*m\.?\s*$", re.IGNORECASE
)
_TWENTY_FOUR_HOUR = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_SLOT_TIME = re.compile(r"\b(\d{1,2}:\d{2}\s*[ap]\.?\s*m\.?)", re.IGNORECASE)


def today_in(timezone_name: str) -> date:
    """Current date in the given timezone, UTC if the name is unknown."""
    try:
        zone = ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {timezone_name}, falling back to UTC")
        zone = ZoneInfo("UTC")
    return datetime.now(tz=zone).date()


def normalize_time(value: str) -> str:
    """Canonicalize a requested time to the site's "H:MM AM/PM" form.

    Examples:
        >>> normalize_time("2pm")
        '2:00 PM'
        >>> normalize_time("2:00 PM")
        '2:00 PM'
        >>> normalize_time("14:30")
        '2:30 PM'

    Raises:
        BookingInputError: If the value is not a recognisable clock time.
    """
    match = _TWELVE_HOUR.match(value)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        meridiem = "AM" if match.group(3).lower() == "a" else "PM"
        if not 1 <= hour <= 12 or minute > 59:
            raise BookingInputError(f"Invalid time: '{value}'")
        return f"{hour}:{minute:02d} {meridiem}"

    match = _TWENTY_FOUR_HOUR.match(value)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2))
        if hour > 23 or minute > 59:
            raise BookingInputError(f"Invalid time: '{value}'")
        meridiem = "AM" if hour < 12 else "PM"
        display_hour = hour % 12 or 12
        return f"{display_hour}:{minute:02d} {meridiem}"

    raise BookingInputError(
        f"Invalid time: '{value}'. Use a form like '2pm' or '2:00 PM'."
    )


def resolve_date(value: str | None, today: date) -> date:
    """Resolve a requested date relative to today.

    None, empty and "tomorrow" mean tomorrow; "today" means today; anything
    else must be an ISO date (YYYY-MM-DD).

    Raises:
        BookingInputError: If the value is not a supported date form.
    """
    if value is None or not value.strip():
        return today + timedelta(days=1)
    text = value.strip().lower()
    if text == "today":
        return today
    if text == "tomorrow":
        return today + timedelta(days=1)
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise BookingInputError(
            f"Invalid date: '{value}'. Use YYYY-MM-DD, 'today' or 'tomorrow'."
        ) from e


def months_ahead(target: date, today: date) -> int:
    """Number of "next month" clicks from the calendar's opening month.

    The site's date picker opens on the current month.

    Raises:
        BookingInputError: If target lies before the current month.
    """
    steps = (target.year - today.year) * 12 + (target.month - today.month)
    if steps < 0:
        raise BookingInputError(f"Date {target.isoformat()} is in the past")
    return steps


def day_selector(day: int) -> str:
    """Date-picker cell for a day of the displayed month.

    Cells padding the grid from adjacent months carry an ``outside-month``
    modifier and are excluded.
    """
    return (
        f".react-datepicker__day--{day:03d}"
        ":not(.react-datepicker__day--outside-month)"
    )


def slot_lines(raw_text: str) -> list[str]:
    """Split the slot panel text into lines that carry a clock time."""
    return [line.strip() for line in raw_text.splitlines() if ":" in line]


def slot_times(lines: list[str]) -> set[str]:
    """Normalized times found in slot lines; unparseable lines are ignored."""
    times = set()
    for line in lines:
        for match in _SLOT_TIME.findall(line):
            try:
                times.add(normalize_time(match))
            except BookingInputError:
                continue
    return times


def is_time_offered(requested: str, lines: list[str]) -> bool:
    """Check whether a requested time appears among the slot lines.

    Falls back to a plain substring test when the request is not a
    recognisable time.
    """
    try:
        normalized = normalize_time(requested)
    except BookingInputError:
        return any(requested in line for line in lines)
    return normalized in slot_times(lines)
