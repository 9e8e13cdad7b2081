from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import EntryMethod, EntryStatus
from .model import EntryLog, EntryWithUser


class EntryRepository(Protocol):
    def find_recent_success(self, user_id: int, since: datetime) -> Optional[EntryLog]:
        """Newest success entry of the user with entry_timestamp >= since."""
        raise NotImplementedError

    def create_entry(
        self,
        *,
        user_id: int,
        entry_timestamp: datetime,
        entry_method: EntryMethod,
        status: EntryStatus,
    ) -> EntryLog:
        raise NotImplementedError

    def create_scan_entry(
        self,
        *,
        user_id: int,
        entry_timestamp: datetime,
        entry_method: EntryMethod,
        since: datetime,
    ) -> Tuple[EntryLog, Optional[EntryLog]]:
        """Atomically insert a success entry, or a duplicate one if a success exists since `since`.

        Returns the inserted entry and the recent success that caused a duplicate (if any).
        """
        raise NotImplementedError

    def list_successes_since(self, since: datetime, *, limit: int) -> Sequence[EntryWithUser]:
        raise NotImplementedError
