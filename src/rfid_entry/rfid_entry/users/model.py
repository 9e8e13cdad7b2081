from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import UserStatus, UserType


@dataclass(frozen=True)
class User:
    """Thực thể miền (domain): người được cấp thẻ RFID.

    Lưu ý: Đây là đối tượng dữ liệu thuần (không chứa code truy cập DB).
    """

    user_id: int
    id_number: str
    rfid_tag: str
    first_name: str
    last_name: str
    user_type: UserType
    college: str
    department: str
    status: UserStatus = UserStatus.ACTIVE
    email: Optional[str] = None
    year_level: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


@dataclass(frozen=True)
class UserFields:
    """Write-model for creating or updating a user (None = keep current value)."""

    id_number: Optional[str] = None
    rfid_tag: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    user_type: Optional[UserType] = None
    college: Optional[str] = None
    department: Optional[str] = None
    year_level: Optional[str] = None
    status: Optional[UserStatus] = None
