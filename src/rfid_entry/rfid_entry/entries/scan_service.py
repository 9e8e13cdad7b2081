from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import elapsed_seconds, now_utc, to_millis
from ..common.validators import require_non_empty
from ..core.enums import EntryMethod, EntryStatus, ScanOutcome
from ..core.exceptions import StoreUnavailableError, ValidationError
from ..tokens.bridge import SignupTokenBridge
from ..users.model import User
from .model import EntryLog
from .recorder import EntryRecorder
from .validator import TagValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanResult:
    outcome: ScanOutcome
    rfid_tag: str
    scanned_at: datetime
    window_seconds: int
    user: Optional[User] = None
    entry: Optional[EntryLog] = None
    last_entry_at: Optional[datetime] = None
    token: Optional[str] = None
    form_url: Optional[str] = None

    @property
    def wait_time(self) -> Optional[int]:
        """Seconds elapsed since the last successful entry."""
        if self.last_entry_at is None:
            return None
        return elapsed_seconds(self.last_entry_at, self.scanned_at)

    @property
    def retry_after(self) -> Optional[int]:
        """Seconds left until the duplicate window closes."""
        if self.wait_time is None:
            return None
        return max(0, self.window_seconds - self.wait_time)


class ScanService:
    """Use case: an RFID tag was scanned at the gate."""

    def __init__(
        self,
        validator: TagValidator,
        recorder: EntryRecorder,
        tokens: SignupTokenBridge,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._validator = validator
        self._recorder = recorder
        self._tokens = tokens
        self._clock = clock

    def scan(self, rfid_tag: str, *, now: datetime | None = None) -> ScanResult:
        try:
            rfid_tag = require_non_empty(rfid_tag, "RFID tag")
        except ValidationError:
            raise ValidationError("RFID tag is required") from None

        now = to_millis(now or self._clock())
        window_seconds = int(self._validator.window.total_seconds())
        logger.info("RFID scan request received for tag: %s", rfid_tag)

        validation = self._validator.validate(rfid_tag, now=now)

        if validation.outcome == ScanOutcome.NOT_FOUND:
            logger.info("RFID tag not found, issuing signup token for: %s", rfid_tag)
            token = self._issue_token(rfid_tag)
            return ScanResult(
                outcome=ScanOutcome.NOT_FOUND,
                rfid_tag=rfid_tag,
                scanned_at=now,
                window_seconds=window_seconds,
                token=token,
                form_url=self._tokens.form_url(token),
            )

        if validation.outcome == ScanOutcome.INACTIVE:
            logger.warning("Inactive user attempted RFID scan: %s", rfid_tag)
            return ScanResult(
                outcome=ScanOutcome.INACTIVE,
                rfid_tag=rfid_tag,
                scanned_at=now,
                window_seconds=window_seconds,
                user=validation.user,
            )

        user = validation.user
        if user is None:
            raise ValueError(f"validation outcome {validation.outcome.value} carries no user")

        entry, last_success_at = self._recorder.record_scan(
            validation,
            EntryMethod.RFID,
            window_start=self._validator.window_start(now),
            now=now,
        )
        outcome = ScanOutcome.DUPLICATE if entry.status == EntryStatus.DUPLICATE else ScanOutcome.FRESH

        if outcome == ScanOutcome.DUPLICATE:
            logger.info(
                "Duplicate entry detected for user %s (%s) with RFID: %s", user.id_number, user.full_name, rfid_tag
            )
        else:
            logger.info(
                "Successful RFID entry recorded for user %s (%s) with RFID: %s", user.id_number, user.full_name, rfid_tag
            )

        token = self._issue_token(user.rfid_tag)
        return ScanResult(
            outcome=outcome,
            rfid_tag=rfid_tag,
            scanned_at=now,
            window_seconds=window_seconds,
            user=user,
            entry=entry,
            last_entry_at=last_success_at if outcome == ScanOutcome.DUPLICATE else None,
            token=token,
            form_url=self._tokens.form_url(token),
        )

    def _issue_token(self, rfid_tag: str) -> Optional[str]:
        # Token store outages degrade the response (no form link) instead of failing the scan.
        try:
            return self._tokens.issue_or_reuse(rfid_tag)
        except StoreUnavailableError as e:
            logger.warning("Signup token unavailable for rfid %s: %s", rfid_tag, e)
            return None
