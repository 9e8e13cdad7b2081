from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .common.datetime_utils import now_utc
from .core.constants import DEFAULT_FORM_URL, DUPLICATE_WINDOW_SECONDS, SIGNUP_TOKEN_TTL_SECONDS
from .database.bootstrap import as_db_config
from .database.connection import DatabaseConnection
from .entries.mysql_entry_repository import MySQLEntryRepository
from .entries.recorder import EntryRecorder
from .entries.repository import EntryRepository
from .entries.scan_service import ScanService
from .entries.service import EntryService
from .entries.validator import TagValidator
from .tokens.bridge import SignupTokenBridge
from .tokens.redis_store import RedisKeyValueStore, build_redis_client
from .tokens.store import KeyValueStore
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    entries_repo: EntryRepository
    token_store: KeyValueStore

    token_bridge: SignupTokenBridge
    tag_validator: TagValidator
    entry_recorder: EntryRecorder
    scan_service: ScanService
    entry_service: EntryService
    user_service: UserService


def assemble(
    *,
    users_repo: UserRepository,
    entries_repo: EntryRepository,
    token_store: KeyValueStore,
    conn: Optional[DatabaseConnection] = None,
    form_base_url: str = DEFAULT_FORM_URL,
    token_ttl_seconds: int = SIGNUP_TOKEN_TTL_SECONDS,
    window_seconds: int = DUPLICATE_WINDOW_SECONDS,
    clock: Callable[[], datetime] = now_utc,
) -> Container:
    """Wire services on top of the given storage adapters (real or in-memory)."""
    token_bridge = SignupTokenBridge(token_store, ttl_seconds=token_ttl_seconds, form_base_url=form_base_url)
    tag_validator = TagValidator(users_repo, entries_repo, window_seconds=window_seconds, clock=clock)
    entry_recorder = EntryRecorder(entries_repo, clock=clock)

    return Container(
        conn=conn,
        users_repo=users_repo,
        entries_repo=entries_repo,
        token_store=token_store,
        token_bridge=token_bridge,
        tag_validator=tag_validator,
        entry_recorder=entry_recorder,
        scan_service=ScanService(tag_validator, entry_recorder, token_bridge, clock=clock),
        entry_service=EntryService(entries_repo, users_repo, entry_recorder, clock=clock),
        user_service=UserService(users_repo, token_bridge, entry_recorder),
    )


def build_container(
    *,
    db_config: dict,
    redis_config: dict,
    form_base_url: str = DEFAULT_FORM_URL,
    token_ttl_seconds: int = SIGNUP_TOKEN_TTL_SECONDS,
) -> Container:
    conn = DatabaseConnection(as_db_config(db_config))
    token_store = RedisKeyValueStore(build_redis_client(redis_config))

    return assemble(
        users_repo=MySQLUserRepository(conn),
        entries_repo=MySQLEntryRepository(conn),
        token_store=token_store,
        conn=conn,
        form_base_url=form_base_url,
        token_ttl_seconds=token_ttl_seconds,
    )
