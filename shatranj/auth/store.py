"""
Persisted login state.

The store is the only place that reads or writes the session records. It keeps two of them, like the
login page keeps a cookie and a local-storage entry:

* "token": the JSON-encoded session token, retained for exactly the token's validity window
* "user":  the last authenticated address, for resolving the roster without decoding the token

Lifecycle: `init` on start, `save` after a login, `clear` on logout. Expiry is detected lazily: whenever
`load` finds an expired or unusable token it clears both records and reports that nobody is logged in.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from shatranj.auth.address import Address
from shatranj.auth.token import SessionToken, TokenCodec
from shatranj.auth.verifier import SignatureVerifier
from shatranj.core.clock import Clock, utc_now
from shatranj.core.exceptions import MalformedTokenError, TokenExpiredError
from shatranj.core.models import SessionRecord
from shatranj.db.repository import SessionRecordRepository

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"


@dataclass(frozen=True)
class UserSession:
    """Who is on this page right now. Both fields are None for an anonymous visitor."""

    address: Optional[Address] = None
    token: Optional[SessionToken] = None

    @property
    def is_authenticated(self) -> bool:
        return self.address is not None and self.token is not None


ANONYMOUS = UserSession()


class SessionStore:
    """Save / load / clear the session token in the session record repository."""

    def __init__(
        self,
        repository: SessionRecordRepository,
        codec: TokenCodec,
        verifier: SignatureVerifier,
        validity: timedelta = timedelta(hours=24),
        path: str = "/",
        same_site: str = "strict",
        clock: Clock = utc_now,
    ) -> None:
        self.repo = repository
        self.codec = codec
        self.verifier = verifier
        self.validity = validity
        self.path = path
        self.same_site = same_site
        self.clock = clock

    # -- Lifecycle --
    def init(self) -> UserSession:
        """Load-on-start: whatever survived the last run, if it is still valid."""
        session = self.session()
        if session.is_authenticated:
            assert session.address is not None
            logger.info("Restored session for %s", session.address.truncated())
        return session

    def save(self, token: SessionToken) -> None:
        """Persist a freshly issued token (and its address) for the validity window."""
        max_age = int(self.validity.total_seconds())
        expires_at = min(token.expires_at, self.clock() + self.validity)
        self.repo.put_record(self._record(TOKEN_KEY, json.dumps(token.encoded), max_age, expires_at))
        self.repo.put_record(self._record(USER_KEY, token.address.value, max_age, expires_at))
        logger.info("Saved session for %s", token.address.truncated())

    def clear(self) -> None:
        """Teardown: logout or expiry."""
        removed = self.repo.delete_record(TOKEN_KEY)
        self.repo.delete_record(USER_KEY)
        if removed is not None:
            logger.info("Cleared stored session")

    # -- Reads --
    def load(self) -> Optional[SessionToken]:
        """The stored token, or None. Never resurrects an expired token: anything unusable gets cleared."""
        record = self.repo.get_record(TOKEN_KEY)
        if record is None:
            return None
        try:
            return self.validate(self._decode_record(record))
        except TokenExpiredError as error:
            logger.info("Stored session expired: %s", error)
        except MalformedTokenError as error:
            logger.warning("Discarding unusable stored session: %s", error)
        self.clear()
        return None

    def load_address(self) -> Optional[Address]:
        """Last authenticated address, read from its own record (no token decoding)."""
        record = self.repo.get_record(USER_KEY)
        if record is None:
            return None
        if self._is_past_max_age(record):
            self.clear()
            return None
        try:
            return Address(record.value)
        except ValueError:
            logger.warning("Discarding unusable stored address %r", record.value)
            self.clear()
            return None

    def session(self) -> UserSession:
        token = self.load()
        if token is None:
            return ANONYMOUS
        return UserSession(address=token.address, token=token)

    def validate(self, token: SessionToken) -> SessionToken:
        """
        Check a token before trusting it: not expired and the embedded wallet signature is genuine.

        Raises TokenExpiredError / MalformedTokenError.
        """
        if token.is_expired(self.clock()):
            raise TokenExpiredError(f"Token expired at {token.expires_at.isoformat()}")
        if not self.verifier.verify(token.message, token.signature, token.address):
            raise MalformedTokenError("Wallet signature in token does not match its subject.")
        return token

    # -- Internal helpers --
    def _decode_record(self, record: SessionRecord) -> SessionToken:
        if self._is_past_max_age(record):
            raise TokenExpiredError(f"Session record expired at {record.expires_at.isoformat()}")
        try:
            encoded = json.loads(record.value)
        except json.JSONDecodeError as error:
            raise MalformedTokenError(f"Stored token is not valid JSON: {error}") from error
        if not isinstance(encoded, str):
            raise MalformedTokenError("Stored token is not a string.")
        return self.codec.decode(encoded)

    def _is_past_max_age(self, record: SessionRecord) -> bool:
        return self.clock() >= record.expires_at

    def _record(
        self, key: str, value: str, max_age: int, expires_at: datetime
    ) -> SessionRecord:
        return SessionRecord(
            key=key,
            value=value,
            path=self.path,
            same_site=self.same_site,
            max_age=max_age,
            expires_at=expires_at,
        )

