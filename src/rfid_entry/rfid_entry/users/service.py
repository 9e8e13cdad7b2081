from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..common.validators import optional_str, require_choice, require_email
from ..core.enums import EntryMethod, EntryStatus, UserStatus, UserType
from ..core.exceptions import NotFoundError, StoreUnavailableError, TokenError, ValidationError
from ..entries.recorder import EntryRecorder
from ..tokens.bridge import SignupTokenBridge
from .model import User, UserFields
from .repository import UserRepository

logger = logging.getLogger(__name__)

_REQUIRED_FOR_CREATE = ("id_number", "first_name", "last_name", "user_type", "college", "department")


@dataclass(frozen=True)
class FormData:
    """What the signup/edit form needs after opening a token link."""

    rfid_tag: str
    user: Optional[User]


class UserService:
    """Use cases around the person record: public lookup, token form, signup/edit."""

    def __init__(self, users: UserRepository, tokens: SignupTokenBridge, recorder: EntryRecorder):
        self._users = users
        self._tokens = tokens
        self._recorder = recorder

    def get_public_info(self, identifier: str) -> User:
        identifier = optional_str(identifier)
        user = None
        if identifier:
            user = self._users.get_by_id_number(identifier) or self._users.get_by_rfid_tag(identifier)
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_form_data(self, token: Optional[str]) -> FormData:
        token = optional_str(token)
        if not token:
            raise ValidationError("Token is required")

        rfid_tag = self._tokens.resolve(token)
        if not rfid_tag:
            raise NotFoundError("Token not found or expired")

        return FormData(rfid_tag=rfid_tag, user=self._users.get_by_rfid_tag(rfid_tag))

    def upsert(self, *, token: Optional[str], rfid_tag: Optional[str], form: Mapping[str, Any]) -> User:
        """Create or update the user behind a tag (signup or edit).

        When a token is given it decides the RFID tag and is consumed afterwards.
        """
        token = optional_str(token)
        rfid_tag = optional_str(rfid_tag)

        if token:
            mapped = self._tokens.resolve(token)
            if not mapped:
                raise TokenError("Invalid or expired token")
            if rfid_tag and rfid_tag != mapped:
                raise TokenError("Provided RFID does not match token")
            rfid_tag = mapped

        if not rfid_tag:
            raise ValidationError("RFID tag is required via token")

        fields = self._parse_fields(form, rfid_tag)
        existing = self._users.find_by_id_number_or_tag(id_number=fields.id_number, rfid_tag=rfid_tag)

        if existing:
            owner = self._users.get_by_rfid_tag(rfid_tag)
            if owner and owner.user_id != existing.user_id:
                raise ValidationError("RFID tag already assigned to another user")
            user = self._users.update_user(existing.user_id, fields)
            logger.info("Updated user %s via form (rfid %s)", user.id_number, rfid_tag)
        else:
            if any(getattr(fields, name) is None for name in _REQUIRED_FOR_CREATE):
                raise ValidationError("Missing required fields for user creation")
            user = self._users.create_user(fields)
            logger.info("Registered user %s via form (rfid %s)", user.id_number, rfid_tag)

        if token:
            try:
                self._tokens.consume(token, rfid_tag)
            except StoreUnavailableError as e:
                logger.warning("Could not consume signup token for rfid %s: %s", rfid_tag, e)

        # The signup/edit counts as an entry at the gate; losing it must not undo the upsert.
        try:
            self._recorder.record(user.user_id, EntryMethod.RFID, EntryStatus.SUCCESS)
        except Exception:
            logger.exception("Entry log write failed after upsert of user %s", user.user_id)

        return user

    @staticmethod
    def _parse_fields(form: Mapping[str, Any], rfid_tag: str) -> UserFields:
        user_type = optional_str(form.get("user_type"))
        status = optional_str(form.get("status"))
        email = optional_str(form.get("email"))

        return UserFields(
            id_number=optional_str(form.get("id_number")),
            rfid_tag=rfid_tag,
            first_name=optional_str(form.get("first_name")),
            last_name=optional_str(form.get("last_name")),
            email=require_email(email) if email else None,
            user_type=require_choice(user_type, UserType, "userType") if user_type else None,
            college=optional_str(form.get("college")),
            department=optional_str(form.get("department")),
            year_level=optional_str(form.get("year_level")),
            status=require_choice(status, UserStatus, "status") if status else None,
        )
