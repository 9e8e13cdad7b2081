from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Tuple

from ..core.enums import EntryMethod, EntryStatus, UserType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import EntryLog, EntryWithUser
from .repository import EntryRepository

_RECENT_SUCCESS_SQL = """
    SELECT log_id, user_id, entry_timestamp, entry_method, status, created_at
    FROM entry_logs
    WHERE user_id=%s AND status='success' AND entry_timestamp >= %s
    ORDER BY entry_timestamp DESC
    LIMIT 1
"""

_INSERT_SQL = """
    INSERT INTO entry_logs(user_id, entry_timestamp, entry_method, status, created_at)
    VALUES(%s,%s,%s,%s,UTC_TIMESTAMP())
"""


def _row_to_entry(row: Dict[str, Any]) -> EntryLog:
    return EntryLog(
        log_id=int(row["log_id"]),
        user_id=int(row["user_id"]),
        entry_timestamp=row["entry_timestamp"],
        entry_method=EntryMethod(row["entry_method"]),
        status=EntryStatus(row["status"]),
        created_at=row.get("created_at"),
    )


class MySQLEntryRepository(EntryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_recent_success(self, user_id: int, since: datetime) -> Optional[EntryLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_RECENT_SUCCESS_SQL, (int(user_id), since))
            rows = fetchall(cur)
            return _row_to_entry(rows[0]) if rows else None

    def create_entry(
        self,
        *,
        user_id: int,
        entry_timestamp: datetime,
        entry_method: EntryMethod,
        status: EntryStatus,
    ) -> EntryLog:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_INSERT_SQL, (int(user_id), entry_timestamp, entry_method.value, status.value))
            log_id = int(cur.lastrowid)

        return EntryLog(
            log_id=log_id,
            user_id=int(user_id),
            entry_timestamp=entry_timestamp,
            entry_method=entry_method,
            status=status,
        )

    def create_scan_entry(
        self,
        *,
        user_id: int,
        entry_timestamp: datetime,
        entry_method: EntryMethod,
        since: datetime,
    ) -> Tuple[EntryLog, Optional[EntryLog]]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the user serializes concurrent scans of the same tag
            # until this transaction commits.
            cur.execute("SELECT user_id FROM users WHERE user_id=%s FOR UPDATE", (int(user_id),))
            fetchall(cur)

            cur.execute(_RECENT_SUCCESS_SQL, (int(user_id), since))
            rows = fetchall(cur)
            recent = _row_to_entry(rows[0]) if rows else None

            status = EntryStatus.DUPLICATE if recent else EntryStatus.SUCCESS
            cur.execute(_INSERT_SQL, (int(user_id), entry_timestamp, entry_method.value, status.value))
            log_id = int(cur.lastrowid)

        entry = EntryLog(
            log_id=log_id,
            user_id=int(user_id),
            entry_timestamp=entry_timestamp,
            entry_method=entry_method,
            status=status,
        )
        return entry, recent

    def list_successes_since(self, since: datetime, *, limit: int) -> Sequence[EntryWithUser]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    e.log_id, e.user_id, e.entry_timestamp, e.entry_method, e.status,
                    u.id_number, u.first_name, u.last_name, u.user_type, u.college, u.department
                FROM entry_logs e
                JOIN users u ON u.user_id = e.user_id
                WHERE e.status='success' AND e.entry_timestamp >= %s
                ORDER BY e.entry_timestamp DESC
                LIMIT %s
                """,
                (since, int(limit)),
            )
            rows = fetchall(cur)

            return [
                EntryWithUser(
                    log_id=int(r["log_id"]),
                    user_id=int(r["user_id"]),
                    entry_timestamp=r["entry_timestamp"],
                    entry_method=EntryMethod(r["entry_method"]),
                    status=EntryStatus(r["status"]),
                    id_number=r["id_number"],
                    full_name=f"{r['first_name']} {r['last_name']}",
                    user_type=UserType(r["user_type"]),
                    college=r["college"],
                    department=r["department"],
                )
                for r in rows
            ]
