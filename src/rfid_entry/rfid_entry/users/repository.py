from __future__ import annotations

from typing import Optional, Protocol

from .model import User, UserFields


class UserRepository(Protocol):
    """Giao diện repository cho User.

    Lưu ý (DIP): tầng service phụ thuộc vào interface này, không phụ thuộc trực tiếp DB cụ thể.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_rfid_tag(self, rfid_tag: str) -> Optional[User]:
        """Lookup regardless of status; callers decide what an inactive user means."""
        raise NotImplementedError

    def get_by_id_number(self, id_number: str) -> Optional[User]:
        raise NotImplementedError

    def find_by_id_number_or_tag(self, *, id_number: Optional[str], rfid_tag: Optional[str]) -> Optional[User]:
        raise NotImplementedError

    def create_user(self, fields: UserFields) -> User:
        raise NotImplementedError

    def update_user(self, user_id: int, fields: UserFields) -> User:
        raise NotImplementedError
