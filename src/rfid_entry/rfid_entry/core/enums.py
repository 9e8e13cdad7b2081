from __future__ import annotations

from enum import Enum


class UserType(str, Enum):
    """Loại người dùng được cấp thẻ RFID."""

    STUDENT = "student"
    FACULTY = "faculty"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class EntryMethod(str, Enum):
    """Cách một lượt vào cổng được ghi nhận."""

    RFID = "rfid"
    MANUAL = "manual"


class EntryStatus(str, Enum):
    """Kết quả lưu trong bảng entry_logs."""

    SUCCESS = "success"
    DUPLICATE = "duplicate"
    ERROR = "error"


class ScanOutcome(str, Enum):
    """Phân loại cuối cùng của một lần quét thẻ."""

    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    DUPLICATE = "duplicate"
    FRESH = "fresh"
