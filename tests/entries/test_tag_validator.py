from __future__ import annotations

from datetime import timedelta

from src.rfid_entry.rfid_entry.core.enums import EntryMethod, EntryStatus, ScanOutcome, UserStatus
from src.rfid_entry.rfid_entry.entries.validator import TagValidator


def _validator(users_repo, entries_repo, clock):
    return TagValidator(users_repo, entries_repo, clock=clock)


def test_unknown_tag_is_not_found(users_repo, entries_repo, clock):
    result = _validator(users_repo, entries_repo, clock).validate("RFID-UNKNOWN-1")

    assert result.outcome == ScanOutcome.NOT_FOUND
    assert result.user is None


def test_inactive_user_is_told_apart_from_unknown(users_repo, entries_repo, clock, add_user):
    add_user(1, rfid_tag="RFID-B", status=UserStatus.INACTIVE)

    result = _validator(users_repo, entries_repo, clock).validate("RFID-B")

    assert result.outcome == ScanOutcome.INACTIVE
    assert result.user.user_id == 1


def test_active_user_without_entries_is_fresh(users_repo, entries_repo, clock, add_user):
    add_user(1)

    result = _validator(users_repo, entries_repo, clock).validate("RFID-A")

    assert result.outcome == ScanOutcome.FRESH
    assert result.last_entry_at is None


def test_recent_success_is_duplicate_with_its_timestamp(users_repo, entries_repo, clock, add_user):
    add_user(1)
    first_at = clock.now - timedelta(minutes=2)
    entries_repo.create_entry(user_id=1, entry_timestamp=first_at, entry_method=EntryMethod.RFID, status=EntryStatus.SUCCESS)

    result = _validator(users_repo, entries_repo, clock).validate("RFID-A")

    assert result.outcome == ScanOutcome.DUPLICATE
    assert result.last_entry_at == first_at


def test_window_boundary(users_repo, entries_repo, clock, add_user):
    add_user(1)
    validator = _validator(users_repo, entries_repo, clock)

    entries_repo.create_entry(
        user_id=1,
        entry_timestamp=clock.now - timedelta(minutes=5, seconds=1),
        entry_method=EntryMethod.RFID,
        status=EntryStatus.SUCCESS,
    )
    assert validator.validate("RFID-A").outcome == ScanOutcome.FRESH

    entries_repo.create_entry(
        user_id=1,
        entry_timestamp=clock.now - timedelta(minutes=5),
        entry_method=EntryMethod.RFID,
        status=EntryStatus.SUCCESS,
    )
    assert validator.validate("RFID-A").outcome == ScanOutcome.DUPLICATE


def test_recent_duplicate_rows_do_not_extend_the_window(users_repo, entries_repo, clock, add_user):
    add_user(1)
    entries_repo.create_entry(
        user_id=1,
        entry_timestamp=clock.now - timedelta(minutes=1),
        entry_method=EntryMethod.RFID,
        status=EntryStatus.DUPLICATE,
    )

    assert _validator(users_repo, entries_repo, clock).validate("RFID-A").outcome == ScanOutcome.FRESH
