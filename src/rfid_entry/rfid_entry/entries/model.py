from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EntryMethod, EntryStatus, UserType


@dataclass(frozen=True)
class EntryLog:
    """Thực thể miền (domain): một lượt quét / vào cổng (append-only)."""

    log_id: int
    user_id: int
    entry_timestamp: datetime
    entry_method: EntryMethod
    status: EntryStatus
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class EntryWithUser:
    """Read-model phục vụ màn hình giám sát (entry + thông tin người quét)."""

    log_id: int
    user_id: int
    entry_timestamp: datetime
    entry_method: EntryMethod
    status: EntryStatus
    id_number: str
    full_name: str
    user_type: UserType
    college: str
    department: str
