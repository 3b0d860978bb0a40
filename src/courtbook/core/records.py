"""Completed-booking ledger keyed by play date."""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta

from courtbook.core.protocols import BookingRecord, KeyValueStore

logger = logging.getLogger(__name__)

BOOKING_KEY_PREFIX = "booking:"


class BookingRecordStore:
    """Append/lookup of completed bookings.

    One record per date key; a later save for the same date replaces the
    earlier one. Records are keyed by date rather than by subject, so
    history is an O(days) scan filtered by email.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    @staticmethod
    def _key(booking_date: str) -> str:
        return f"{BOOKING_KEY_PREFIX}{booking_date}"

    async def save(self, record: BookingRecord) -> None:
        """Upsert the record under its date.

        Raises:
            StorageError: If the backend rejects the write.
        """
        await self.store.put(self._key(record.date), json.dumps(record.to_dict()))
        logger.info(f"Booking saved: {self._key(record.date)}")

    async def get(self, booking_date: str) -> BookingRecord | None:
        """Return the record stored for an ISO date, if readable."""
        raw = await self.store.get(self._key(booking_date))
        if raw is None:
            return None
        try:
            return BookingRecord.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(
                f"Skipping unreadable booking record for {booking_date}: {e}"
            )
            return None

    async def history(
        self,
        subject_email: str,
        lookback_days: int,
        today: date | None = None,
    ) -> list[BookingRecord]:
        """Return the subject's bookings for the last lookback_days days.

        Days are scanned from today backwards, today included; the result
        keeps that order.

        Raises:
            StorageError: If the backend cannot be read.
        """
        start = today or date.today()
        bookings = []
        for offset in range(max(lookback_days, 0)):
            day = (start - timedelta(days=offset)).isoformat()
            record = await self.get(day)
            if record is not None and record.subject_email == subject_email:
                bookings.append(record)
        return bookings
