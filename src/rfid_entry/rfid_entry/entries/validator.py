from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import now_utc
from ..core.constants import DUPLICATE_WINDOW_SECONDS
from ..core.enums import ScanOutcome
from ..users.model import User
from ..users.repository import UserRepository
from .repository import EntryRepository


@dataclass(frozen=True)
class TagValidation:
    outcome: ScanOutcome
    user: Optional[User] = None
    last_entry_at: Optional[datetime] = None


class TagValidator:
    """Classify a scanned tag: unknown, inactive, duplicate (recent success) or fresh.

    The user lookup ignores status on purpose so an unknown tag (signup flow)
    can be told apart from a deactivated one.
    """

    def __init__(
        self,
        users: UserRepository,
        entries: EntryRepository,
        *,
        window_seconds: int = DUPLICATE_WINDOW_SECONDS,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._users = users
        self._entries = entries
        self._window = timedelta(seconds=int(window_seconds))
        self._clock = clock

    @property
    def window(self) -> timedelta:
        return self._window

    def window_start(self, now: datetime) -> datetime:
        return now - self._window

    def validate(self, rfid_tag: str, *, now: datetime | None = None) -> TagValidation:
        now = now or self._clock()

        user = self._users.get_by_rfid_tag(rfid_tag)
        if not user:
            return TagValidation(ScanOutcome.NOT_FOUND)

        if not user.is_active:
            return TagValidation(ScanOutcome.INACTIVE, user=user)

        recent = self._entries.find_recent_success(user.user_id, self.window_start(now))
        if recent:
            return TagValidation(ScanOutcome.DUPLICATE, user=user, last_entry_at=recent.entry_timestamp)

        return TagValidation(ScanOutcome.FRESH, user=user)
