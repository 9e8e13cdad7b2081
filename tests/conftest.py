from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

import pytest

from src.rfid_entry.rfid_entry.main import create_app
from src.rfid_entry.rfid_entry.container import assemble
from src.rfid_entry.rfid_entry.core.enums import EntryMethod, EntryStatus, UserStatus, UserType
from src.rfid_entry.rfid_entry.core.exceptions import StoreUnavailableError
from src.rfid_entry.rfid_entry.entries.model import EntryLog, EntryWithUser
from src.rfid_entry.rfid_entry.users.model import User, UserFields


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryUsers:
    def __init__(self, clock: FakeClock):
        self._clock = clock
        self._by_id: dict[int, User] = {}
        self._next_id = 1

    def add(self, user: User) -> User:
        self._by_id[user.user_id] = user
        self._next_id = max(self._next_id, user.user_id + 1)
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(int(user_id))

    def get_by_rfid_tag(self, rfid_tag: str) -> Optional[User]:
        return next((u for u in self._by_id.values() if u.rfid_tag == rfid_tag), None)

    def get_by_id_number(self, id_number: str) -> Optional[User]:
        return next((u for u in self._by_id.values() if u.id_number == id_number), None)

    def find_by_id_number_or_tag(self, *, id_number, rfid_tag) -> Optional[User]:
        return (id_number and self.get_by_id_number(id_number)) or (rfid_tag and self.get_by_rfid_tag(rfid_tag)) or None

    def create_user(self, fields: UserFields) -> User:
        user = User(
            user_id=self._next_id,
            id_number=fields.id_number,
            rfid_tag=fields.rfid_tag,
            first_name=fields.first_name,
            last_name=fields.last_name,
            email=fields.email,
            user_type=fields.user_type,
            college=fields.college,
            department=fields.department,
            year_level=fields.year_level,
            status=fields.status or UserStatus.ACTIVE,
            created_at=self._clock(),
            updated_at=self._clock(),
        )
        return self.add(user)

    def update_user(self, user_id: int, fields: UserFields) -> User:
        changes = {k: v for k, v in vars(fields).items() if v is not None}
        updated = replace(self._by_id[int(user_id)], updated_at=self._clock(), **changes)
        self._by_id[updated.user_id] = updated
        return updated


class InMemoryEntries:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.rows: list[EntryLog] = []
        self.fail_writes = False

    def _latest_success(self, user_id: int, since: datetime) -> Optional[EntryLog]:
        items = [
            r for r in self.rows
            if r.user_id == user_id and r.status == EntryStatus.SUCCESS and r.entry_timestamp >= since
        ]
        items.sort(key=lambda r: r.entry_timestamp, reverse=True)
        return items[0] if items else None

    def find_recent_success(self, user_id: int, since: datetime) -> Optional[EntryLog]:
        return self._latest_success(user_id, since)

    def create_entry(self, *, user_id, entry_timestamp, entry_method, status) -> EntryLog:
        if self.fail_writes:
            raise RuntimeError("entry_logs unavailable")
        entry = EntryLog(
            log_id=len(self.rows) + 1,
            user_id=user_id,
            entry_timestamp=entry_timestamp,
            entry_method=entry_method,
            status=status,
            created_at=entry_timestamp,
        )
        self.rows.append(entry)
        return entry

    def create_scan_entry(self, *, user_id, entry_timestamp, entry_method, since):
        recent = self._latest_success(user_id, since)
        status = EntryStatus.DUPLICATE if recent else EntryStatus.SUCCESS
        entry = self.create_entry(
            user_id=user_id, entry_timestamp=entry_timestamp, entry_method=entry_method, status=status
        )
        return entry, recent

    def list_successes_since(self, since: datetime, *, limit: int):
        out = []
        for r in sorted(self.rows, key=lambda r: r.entry_timestamp, reverse=True):
            if r.status != EntryStatus.SUCCESS or r.entry_timestamp < since:
                continue
            u = self._users.get_by_id(r.user_id)
            out.append(
                EntryWithUser(
                    log_id=r.log_id,
                    user_id=r.user_id,
                    entry_timestamp=r.entry_timestamp,
                    entry_method=r.entry_method,
                    status=r.status,
                    id_number=u.id_number,
                    full_name=u.full_name,
                    user_type=u.user_type,
                    college=u.college,
                    department=u.department,
                )
            )
        return out[:limit]

    def for_user(self, user_id: int) -> list[EntryLog]:
        return [r for r in self.rows if r.user_id == user_id]


class InMemoryKeyValueStore:
    """Redis-like string store; TTLs follow the fake clock."""

    def __init__(self, clock: FakeClock):
        self._clock = clock
        self._data: dict[str, tuple[str, datetime]] = {}
        self.available = True

    def _check(self) -> None:
        if not self.available:
            raise StoreUnavailableError("redis down")

    def _live(self, key: str) -> Optional[tuple[str, datetime]]:
        item = self._data.get(key)
        if item and item[1] <= self._clock():
            del self._data[key]
            return None
        return item

    def get(self, key: str) -> Optional[str]:
        self._check()
        item = self._live(key)
        return item[0] if item else None

    def set(self, key: str, value: str, ttl_seconds: int, *, only_if_absent: bool = False) -> bool:
        self._check()
        if only_if_absent and self._live(key):
            return False
        self._data[key] = (value, self._clock() + timedelta(seconds=ttl_seconds))
        return True

    def expire(self, key: str, ttl_seconds: int) -> bool:
        self._check()
        item = self._live(key)
        if not item:
            return False
        self._data[key] = (item[0], self._clock() + timedelta(seconds=ttl_seconds))
        return True

    def delete(self, *keys: str) -> int:
        self._check()
        return sum(1 for k in keys if self._data.pop(k, None) is not None)

    def ping(self) -> bool:
        return self.available

    def ttl(self, key: str) -> Optional[int]:
        item = self._live(key)
        if not item:
            return None
        return int((item[1] - self._clock()).total_seconds())


def make_user(user_id: int = 1, *, rfid_tag: str = "RFID-A", status: UserStatus = UserStatus.ACTIVE, **overrides) -> User:
    values = dict(
        user_id=user_id,
        id_number=f"2021-{user_id:05d}",
        rfid_tag=rfid_tag,
        first_name="Ana",
        last_name="Reyes",
        user_type=UserType.STUDENT,
        college="Engineering",
        department="Computer Engineering",
        status=status,
    )
    values.update(overrides)
    return User(**values)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 8, 30, 0)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def users_repo(clock) -> InMemoryUsers:
    return InMemoryUsers(clock)


@pytest.fixture
def entries_repo(users_repo) -> InMemoryEntries:
    return InMemoryEntries(users_repo)


@pytest.fixture
def kv_store(clock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock)


@pytest.fixture
def container(users_repo, entries_repo, kv_store, clock):
    return assemble(
        users_repo=users_repo,
        entries_repo=entries_repo,
        token_store=kv_store,
        form_base_url="http://forms.test/",
        clock=clock,
    )


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def add_user(users_repo):
    def _add(user_id: int = 1, **kwargs) -> User:
        return users_repo.add(make_user(user_id, **kwargs))

    return _add
