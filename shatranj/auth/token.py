"""
Session token: a self-contained credential issued after a successful wallet login.

The token is a JWT signed with the application secret. Besides subject / issued-at / expiry it carries the
challenge message and the wallet signature over it, so the wallet proof can be re-checked on every load
without talking to the wallet again.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from shatranj.auth.address import Address
from shatranj.core.exceptions import MalformedTokenError

TOKEN_TYPE = "session"
REQUIRED_CLAIMS = ("sub", "iat", "exp", "msg", "sig")


@dataclass(frozen=True)
class SessionToken:
    """Decoded view of a session token. `encoded` is what gets persisted."""

    address: Address
    issued_at: datetime
    expires_at: datetime
    message: str
    signature: str
    encoded: str = field(default="", compare=False, repr=False)

    @property
    def validity(self) -> timedelta:
        return self.expires_at - self.issued_at

    def is_expired(self, now: datetime) -> bool:
        """A token is usable strictly before its expiry."""
        return now >= self.expires_at


class TokenCodec:
    """Encode / decode session tokens with a shared secret."""

    def __init__(self, secret_key: str, algorithm: str = "HS256") -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm

    def encode(
        self,
        address: Address,
        message: str,
        signature: str,
        issued_at: datetime,
        validity: timedelta,
    ) -> SessionToken:
        # JWT timestamps have a resolution of seconds. Truncate first so expiry == issued-at + validity exactly.
        issued_at = datetime.fromtimestamp(int(issued_at.timestamp()), timezone.utc)
        expires_at = issued_at + validity
        payload = {
            "sub": address.value,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "msg": message,
            "sig": signature,
            "type": TOKEN_TYPE,
        }
        encoded = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return SessionToken(
            address=address,
            issued_at=issued_at,
            expires_at=expires_at,
            message=message,
            signature=signature,
            encoded=encoded,
        )

    def decode(self, encoded: str) -> SessionToken:
        """
        Check the token signature and rebuild the SessionToken.

        Expiry is NOT enforced here: callers compare against their own clock (see SessionStore.load).
        """
        try:
            payload = jwt.decode(
                encoded,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except (JWTError, AttributeError) as error:
            raise MalformedTokenError(f"Cannot decode session token: {error}") from error

        missing = [claim for claim in REQUIRED_CLAIMS if claim not in payload]
        if missing:
            raise MalformedTokenError(f"Session token misses claims: {', '.join(missing)}")
        if payload.get("type") != TOKEN_TYPE:
            raise MalformedTokenError(f"Not a session token: type={payload.get('type')!r}")

        try:
            address = Address(payload["sub"])
            issued_at = datetime.fromtimestamp(int(payload["iat"]), timezone.utc)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), timezone.utc)
        except (TypeError, ValueError) as error:
            raise MalformedTokenError(f"Invalid claims in session token: {error}") from error

        if expires_at <= issued_at:
            raise MalformedTokenError("Session token expires before it was issued.")

        return SessionToken(
            address=address,
            issued_at=issued_at,
            expires_at=expires_at,
            message=str(payload["msg"]),
            signature=str(payload["sig"]),
            encoded=encoded,
        )
