from __future__ import annotations

from typing import Any, Dict, Optional

from ..core.enums import UserStatus, UserType
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User, UserFields
from .repository import UserRepository

_COLUMNS = """
    user_id, id_number, rfid_tag, first_name, last_name, email, user_type,
    college, department, year_level, status, created_at, updated_at
"""

# UserFields attribute -> column
_FIELD_COLUMNS = {
    "id_number": "id_number",
    "rfid_tag": "rfid_tag",
    "first_name": "first_name",
    "last_name": "last_name",
    "email": "email",
    "user_type": "user_type",
    "college": "college",
    "department": "department",
    "year_level": "year_level",
    "status": "status",
}


def _row_to_user(row: Dict[str, Any]) -> User:
    return User(
        user_id=int(row["user_id"]),
        id_number=row["id_number"],
        rfid_tag=row["rfid_tag"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row.get("email"),
        user_type=UserType(row["user_type"]),
        college=row["college"],
        department=row["department"],
        year_level=row.get("year_level"),
        status=UserStatus(row["status"]),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _db_value(value):
    return value.value if isinstance(value, (UserType, UserStatus)) else value


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {where} LIMIT 1", params)
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id=%s", (int(user_id),))

    def get_by_rfid_tag(self, rfid_tag: str) -> Optional[User]:
        return self._get_one("rfid_tag=%s", (rfid_tag,))

    def get_by_id_number(self, id_number: str) -> Optional[User]:
        return self._get_one("id_number=%s", (id_number,))

    def find_by_id_number_or_tag(self, *, id_number: Optional[str], rfid_tag: Optional[str]) -> Optional[User]:
        clauses: list[str] = []
        params: list[object] = []
        if id_number:
            clauses.append("id_number=%s")
            params.append(id_number)
        if rfid_tag:
            clauses.append("rfid_tag=%s")
            params.append(rfid_tag)
        if not clauses:
            return None

        with db_cursor(self._conn_factory) as (_, cur):
            # Prefer the id_number match when both point at different rows.
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM users
                WHERE {" OR ".join(clauses)}
                ORDER BY (id_number=%s) DESC, user_id ASC
                """,
                (*params, id_number or ""),
            )
            rows = fetchall(cur)
            return _row_to_user(rows[0]) if rows else None

    def create_user(self, fields: UserFields) -> User:
        values = {col: _db_value(getattr(fields, attr)) for attr, col in _FIELD_COLUMNS.items()}
        values["status"] = values["status"] or UserStatus.ACTIVE.value
        columns = ", ".join(values)
        placeholders = ",".join(["%s"] * len(values))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO users({columns}, created_at, updated_at) VALUES({placeholders}, UTC_TIMESTAMP(), UTC_TIMESTAMP())",
                tuple(values.values()),
            )
            user_id = int(cur.lastrowid)

        created = self.get_by_id(user_id)
        if created is None:
            raise NotFoundError(f"User {user_id} not found after insert")
        return created

    def update_user(self, user_id: int, fields: UserFields) -> User:
        sets: list[str] = []
        params: list[object] = []
        for attr, col in _FIELD_COLUMNS.items():
            value = getattr(fields, attr)
            if value is None:
                continue
            sets.append(f"{col}=%s")
            params.append(_db_value(value))

        if sets:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE users SET {', '.join(sets)}, updated_at=UTC_TIMESTAMP() WHERE user_id=%s",
                    (*params, int(user_id)),
                )

        updated = self.get_by_id(user_id)
        if updated is None:
            raise NotFoundError(f"User {user_id} not found")
        return updated
