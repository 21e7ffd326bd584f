"""
Custom exception hierarchy.

Domain layers raise these. GameSession turns them into explicit result values (AuthResult, RejectedMove),
so nothing in here is ever fatal to the process.
"""

from shatranj.core.shared_types import MoveViolation


class ShatranjError(Exception):
    """Top-level exception for anything raised by this package."""


# --- AUTHENTICATION ---
class AuthError(ShatranjError):
    """Authentication did not complete. The message is meant to be shown to the user."""

    def __init__(self, message: str = "Could not connect to the wallet.") -> None:
        super().__init__(message)
        self.message = message


class WalletUnavailableError(AuthError):
    """No wallet provider could be reached (e.g. the browser extension is not installed)."""

    def __init__(
        self, message: str = "No wallet provider found. Please install and activate a wallet."
    ) -> None:
        super().__init__(message)


class UserRejectedError(AuthError):
    """The user declined to sign, or the wallet is locked."""

    def __init__(self, message: str = "Signing request was rejected.") -> None:
        super().__init__(message)


class AddressMismatchError(UserRejectedError):
    """The signature was produced by another account than the active one."""

    def __init__(self, expected: str, signer: str) -> None:
        super().__init__(
            f"Signature came from {signer}, but the active wallet account is {expected}."
        )
        self.expected = expected
        self.signer = signer


# --- SESSION TOKENS ---
class TokenError(ShatranjError):
    """Stored or presented session token cannot be used."""


class TokenExpiredError(TokenError):
    """Token is past its expiry."""


class MalformedTokenError(TokenError):
    """Token cannot be decoded, its signature does not verify, or claims are missing."""


# --- GAME ---
class GameError(ShatranjError):
    """Anything that went wrong while playing the game."""


class IllegalMoveError(GameError):
    """Rules engine refused the move. `reason` tells which class of rule was violated."""

    def __init__(self, reason: MoveViolation, move: str = "") -> None:
        super().__init__(f"Move not allowed: {move!r} ({reason})")
        self.reason = reason
        self.move = move


class MalformedPositionError(GameError):
    """String could not be interpreted as a (playable) FEN position."""

    def __init__(self, reason: str, fen: str = "") -> None:
        super().__init__(f"Cannot interpret supplied string as FEN: {fen!r} ({reason})")
        self.reason = reason
        self.fen = fen


class NotYourTurnError(GameError):
    """Player tried to act while the opponent is to move."""


# --- BOUNDARIES ---
class InvalidRequestError(ShatranjError, ValueError):
    """Request model failed validation. Subclass of ValueError so pydantic reports it as a validation error."""


class RepositoryError(ShatranjError):
    """Persistence layer could not complete the operation."""
