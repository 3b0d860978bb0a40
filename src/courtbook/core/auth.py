"""TTL-backed authorization store.

Authorization records are written by the identity intake after the
subject's email passes the allow-list check, and read by every gated tool.
Lookups answer "is any fresh authorization active", not "is this caller
authorized": the tool transport carries no subject identity, so the store
serves a single-operator deployment.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable

from courtbook.core.protocols import AuthorizationRecord, KeyValueStore
from courtbook.utils.exceptions import StorageError

logger = logging.getLogger(__name__)

AUTH_KEY_PREFIX = "auth-session:"
DEFAULT_AUTH_TTL = 3600


class AuthorizationStore:
    """Issues and looks up authorization records with wall-clock expiry.

    Expiry is checked at read time only; nothing sweeps old records. When
    the backend also supports TTLs the record is written with one so it is
    eventually collected.

    Attributes:
        store: Key-value backend shared with the booking record store.
        ttl: Lifetime of a record in seconds.
        clock: Callable returning the current Unix time in seconds.
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl: int = DEFAULT_AUTH_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.ttl = ttl
        self.clock = clock

    @staticmethod
    def _key(subject_id: str) -> str:
        return f"{AUTH_KEY_PREFIX}{subject_id}"

    async def issue(self, subject_id: str, subject_email: str) -> AuthorizationRecord:
        """Persist a fresh record for the subject.

        Must only be called after the identity assertion was verified and
        the email passed the allow-list check. Overwrites any earlier record
        for the same subject.

        Args:
            subject_id: Identity-provider user id.
            subject_email: The subject's email address.

        Returns:
            The stored record.

        Raises:
            StorageError: If the backend rejects the write.
        """
        record = AuthorizationRecord(
            subject_id=subject_id,
            subject_email=subject_email,
            verified=True,
            issued_at=self.clock(),
        )
        await self.store.put(
            self._key(subject_id), json.dumps(record.to_dict()), ttl=self.ttl
        )
        logger.info(f"Authorization issued for {subject_email}")
        return record

    async def current(self) -> AuthorizationRecord | None:
        """Return the most recently issued fresh record, if any.

        A backend failure is treated as "no authorization".
        """
        try:
            records = await self._fresh_records()
        except StorageError as e:
            logger.warning(f"Authorization store unavailable, failing closed: {e}")
            return None
        if not records:
            logger.info("No valid authorization found")
            return None
        return max(records, key=lambda record: record.issued_at)

    async def active(self) -> list[AuthorizationRecord]:
        """Return every fresh record, newest first.

        Raises:
            StorageError: If the backend cannot be read.
        """
        records = await self._fresh_records()
        return sorted(records, key=lambda record: record.issued_at, reverse=True)

    def is_fresh(self, record: AuthorizationRecord) -> bool:
        """Check whether a record is still within its TTL."""
        return self.clock() - record.issued_at < self.ttl

    async def _fresh_records(self) -> list[AuthorizationRecord]:
        records = []
        for key in await self.store.list_keys(AUTH_KEY_PREFIX):
            raw = await self.store.get(key)
            if raw is None:
                continue
            try:
                record = AuthorizationRecord.from_dict(json.loads(raw))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping unreadable authorization record {key}: {e}")
                continue
            if self.is_fresh(record):
                records.append(record)
        return records
