from __future__ import annotations

import logging
import re
import secrets
from typing import Optional
from urllib.parse import urlencode

from ..core.constants import DEFAULT_FORM_URL, SIGNUP_TOKEN_BYTES, SIGNUP_TOKEN_TTL_SECONDS
from .store import KeyValueStore

logger = logging.getLogger(__name__)

TOKEN_KEY_PREFIX = "signup:token:"
RFID_KEY_PREFIX = "signup:rfid:"


class SignupTokenBridge:
    """Short-lived opaque token mapped both ways to an RFID tag.

    The token links an anonymous scan to the web form (signup or "review my info").
    At most one live token exists per tag: repeated scans reuse and refresh it so a
    link already opened on the person's phone stays valid.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        ttl_seconds: int = SIGNUP_TOKEN_TTL_SECONDS,
        form_base_url: str = DEFAULT_FORM_URL,
        token_bytes: int = SIGNUP_TOKEN_BYTES,
    ):
        self._store = store
        self._ttl = int(ttl_seconds)
        self._form_base_url = form_base_url.rstrip("/")
        self._token_bytes = int(token_bytes)
        self._token_re = re.compile(rf"^[0-9a-f]{{{self._token_bytes * 2}}}$")

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    @staticmethod
    def token_key(token: str) -> str:
        return f"{TOKEN_KEY_PREFIX}{token}"

    @staticmethod
    def rfid_key(rfid_tag: str) -> str:
        return f"{RFID_KEY_PREFIX}{rfid_tag}"

    def issue_or_reuse(self, rfid_tag: str) -> str:
        rfid_key = self.rfid_key(rfid_tag)

        token = self._store.get(rfid_key)
        if token:
            if self._store.expire(self.token_key(token), self._ttl):
                self._store.expire(rfid_key, self._ttl)
                logger.debug("Reused signup token for rfid %s", rfid_tag)
                return token
            # Reverse key outlived its token: start over.
            self._store.delete(rfid_key)

        token = secrets.token_hex(self._token_bytes)
        if not self._store.set(rfid_key, token, self._ttl, only_if_absent=True):
            # A concurrent scan of the same tag claimed the slot first; share its token.
            winner = self._store.get(rfid_key)
            if winner:
                return winner
            self._store.set(rfid_key, token, self._ttl)

        self._store.set(self.token_key(token), rfid_tag, self._ttl)
        logger.debug("Issued signup token for rfid %s", rfid_tag)
        return token

    def resolve(self, token: str) -> Optional[str]:
        """RFID tag for the token, or None when expired, never issued or malformed."""
        if not token or not self._token_re.match(token):
            return None
        return self._store.get(self.token_key(token))

    def consume(self, token: str, rfid_tag: str) -> None:
        self._store.delete(self.token_key(token), self.rfid_key(rfid_tag))

    def form_url(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        return f"{self._form_base_url}/entry-form?{urlencode({'token': token})}"
