from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Sequence

from ..common.datetime_utils import now_utc, start_of_day
from ..common.validators import require_non_empty
from ..core.constants import ACTIVE_ENTRIES_LIMIT
from ..core.enums import EntryMethod, EntryStatus, UserType
from ..core.exceptions import NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import EntryLog, EntryWithUser
from .recorder import EntryRecorder
from .repository import EntryRepository


@dataclass(frozen=True)
class ActiveEntries:
    entries: Sequence[EntryWithUser]
    total_today: int
    students: int
    faculty: int
    last_hour: int


class EntryService:
    """Manual entries and real-time monitoring."""

    def __init__(
        self,
        entries: EntryRepository,
        users: UserRepository,
        recorder: EntryRecorder,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._entries = entries
        self._users = users
        self._recorder = recorder
        self._clock = clock

    def record_manual(self, id_number: str, *, now: datetime | None = None) -> tuple[EntryLog, User]:
        try:
            id_number = require_non_empty(id_number, "ID number")
        except ValidationError:
            raise ValidationError("ID number is required") from None

        user = self._users.get_by_id_number(id_number)
        if not user or not user.is_active:
            raise NotFoundError("User not found or inactive")

        entry = self._recorder.record(user.user_id, EntryMethod.MANUAL, EntryStatus.SUCCESS, now=now)
        return entry, user

    def get_active(self, *, now: datetime | None = None, limit: int = ACTIVE_ENTRIES_LIMIT) -> ActiveEntries:
        now = now or self._clock()
        rows = list(self._entries.list_successes_since(start_of_day(now), limit=limit))
        hour_ago = now - timedelta(hours=1)

        return ActiveEntries(
            entries=rows,
            total_today=len(rows),
            students=sum(1 for r in rows if r.user_type == UserType.STUDENT),
            faculty=sum(1 for r in rows if r.user_type == UserType.FACULTY),
            last_hour=sum(1 for r in rows if r.entry_timestamp >= hour_ago),
        )
