from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, Tuple

from ..common.datetime_utils import now_utc, to_millis
from ..core.enums import EntryMethod, EntryStatus, ScanOutcome
from .model import EntryLog
from .repository import EntryRepository
from .validator import TagValidation


class EntryRecorder:
    """Append entry_logs rows. No validation beyond what the caller established."""

    def __init__(self, entries: EntryRepository, *, clock: Callable[[], datetime] = now_utc):
        self._entries = entries
        self._clock = clock

    def record(
        self,
        user_id: int,
        method: EntryMethod,
        status: EntryStatus,
        *,
        now: datetime | None = None,
    ) -> EntryLog:
        return self._entries.create_entry(
            user_id=user_id,
            entry_timestamp=to_millis(now or self._clock()),
            entry_method=method,
            status=status,
        )

    def record_scan(
        self,
        validation: TagValidation,
        method: EntryMethod,
        *,
        window_start: datetime,
        now: datetime | None = None,
    ) -> Tuple[EntryLog, Optional[datetime]]:
        """Record the entry for a DUPLICATE or FRESH validation.

        A FRESH result is re-checked inside the insert transaction; if another scan
        recorded a success in between, the row is stored as a duplicate instead.
        Returns the entry and the timestamp of the success that made it a duplicate.
        """
        if validation.user is None or validation.outcome not in (ScanOutcome.DUPLICATE, ScanOutcome.FRESH):
            raise ValueError(f"no entry is recorded for outcome {validation.outcome.value}")

        now = to_millis(now or self._clock())
        user_id = validation.user.user_id

        if validation.outcome == ScanOutcome.DUPLICATE:
            entry = self.record(user_id, method, EntryStatus.DUPLICATE, now=now)
            return entry, validation.last_entry_at

        entry, recent = self._entries.create_scan_entry(
            user_id=user_id,
            entry_timestamp=now,
            entry_method=method,
            since=window_start,
        )
        return entry, (recent.entry_timestamp if recent else None)
