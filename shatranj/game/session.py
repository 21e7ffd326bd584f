"""
GameSession: the entrypoint into the domain layer for the service layer.

It combines who is logged in (SessionStore), where they sit (TurnResolver) and the board (PositionState) to decide
whether a move request gets through. Domain errors are turned into explicit result values here:
AuthResult for logins, RejectedMove for anything that does not change the board.

States
----
UNAUTHENTICATED -> OBSERVER / PLAYER(color)   only through a stored token or a fresh login
OBSERVER / PLAYER(color) -> same               on reloading the same valid token
any -> UNAUTHENTICATED                         on expiry (detected at any read) or logout
"""

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

from shatranj.auth.issuer import AuthResult, FlowStatus, SessionTokenIssuer
from shatranj.auth.store import ANONYMOUS, SessionStore, UserSession
from shatranj.auth.wallet import WalletProvider
from shatranj.chess.moves import Move
from shatranj.chess.position import PositionState
from shatranj.core.exceptions import (
    GameError,
    IllegalMoveError,
    MalformedPositionError,
    MalformedTokenError,
    TokenError,
    UserRejectedError,
)
from shatranj.core.shared_types import Color, MoveViolation, Observer, Seat
from shatranj.game.turns import Roster, TurnResolver

logger = logging.getLogger(__name__)


class AuthState(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    OBSERVER = "observer"
    PLAYER = "player"


@dataclass(frozen=True)
class SessionState:
    auth_state: AuthState
    color: Optional[Color] = None

    @property
    def seat(self) -> Seat:
        return self.color if self.color is not None else Observer.OBSERVER


UNAUTHENTICATED = SessionState(AuthState.UNAUTHENTICATED)


class RejectionReason(StrEnum):
    UNAUTHENTICATED = "not logged in"
    OBSERVER = "observers cannot move"
    NOT_YOUR_TURN = "not your turn"
    ILLEGAL_MOVE = "illegal move"
    MALFORMED_POSITION = "malformed position"
    NOTHING_TO_UNDO = "nothing to undo"


@dataclass(frozen=True)
class RejectedMove:
    """Why a request did not change the board. The board and the session are exactly as before."""

    reason: RejectionReason
    message: str
    violation: Optional[MoveViolation] = None


class GameSession:
    """Orchestrates authentication, seating and move application for one match."""

    def __init__(
        self,
        position: PositionState,
        roster: Roster,
        store: SessionStore,
        issuer: SessionTokenIssuer,
        resolver: TurnResolver | None = None,
    ) -> None:
        self.position = position
        self.roster = roster
        self.store = store
        self.issuer = issuer
        self.resolver = resolver or TurnResolver()

    # -- Authentication --
    def current_session(self) -> UserSession:
        """Re-read on every call, so an expired token downgrades the visitor right away."""
        return self.store.session()

    def state(self, session: UserSession) -> SessionState:
        if not session.is_authenticated or not self._is_trusted(session):
            return UNAUTHENTICATED

        seat = self.resolver.resolve(session.address, self.roster)
        if isinstance(seat, Color):
            return SessionState(AuthState.PLAYER, seat)
        return SessionState(AuthState.OBSERVER)

    async def authenticate(self, wallet: Optional[WalletProvider]) -> AuthResult:
        """
        Log in with a wallet. Only a successful flow touches the store.

        A failed login (including a signer / account mismatch) leaves any session that is already stored as it is.
        """
        result = await self.issuer.issue(wallet)
        if result.status != FlowStatus.SUCCESS:
            return result

        assert result.token is not None
        try:
            token = self.store.validate(result.token)
        except TokenError as error:
            logger.warning("Freshly issued token failed verification: %s", error)
            return AuthResult(
                result.flow_id, FlowStatus.FAILURE, error=UserRejectedError(str(error))
            )

        self.store.save(token)
        return result

    def logout(self) -> UserSession:
        self.store.clear()
        return ANONYMOUS

    def orientation(self, session: UserSession) -> Color:
        """Board orientation for the viewer: their own color, white for everyone else."""
        state = self.state(session)
        return state.color or Color.WHITE

    # -- Board --
    def submit_move(self, session: UserSession, move: Move | str) -> str | RejectedMove:
        """
        Play a move on behalf of the session.
        ----
        Accepted only if the session is a seated player, it is that player's turn, and the rules engine accepts it.
        Returns the new FEN, or a RejectedMove (nothing changed).
        """
        rejection = self._gate_player(session)
        if rejection:
            return rejection

        color = self.state(session).color
        side_to_move = self.position.current_side_to_move()
        if color != side_to_move:
            return self._reject(
                RejectionReason.NOT_YOUR_TURN,
                f"It is not your turn. Waiting for {self.roster.player_for(side_to_move).username} ({side_to_move}) to move.",
            )

        try:
            return self.position.apply_move(move)
        except IllegalMoveError as error:
            return self._reject(RejectionReason.ILLEGAL_MOVE, str(error), error.reason)

    def load_position(self, session: UserSession, fen: str) -> str | RejectedMove:
        """Replace the board (players only). Either the new FEN is loaded completely, or nothing changes."""
        rejection = self._gate_player(session)
        if rejection:
            return rejection
        try:
            return self.position.load_position(fen)
        except MalformedPositionError as error:
            return self._reject(RejectionReason.MALFORMED_POSITION, str(error))

    def undo(self, session: UserSession, count: int = 1) -> str | RejectedMove:
        """Take back moves (players only) by replaying a shorter prefix of the move record."""
        rejection = self._gate_player(session)
        if rejection:
            return rejection
        try:
            return self.position.undo(count)
        except GameError as error:
            return self._reject(RejectionReason.NOTHING_TO_UNDO, str(error))

    # -- Internal helpers --
    def _is_trusted(self, session: UserSession) -> bool:
        """Only tokens minted here for the session's address count, and only while `SessionStore.validate` accepts them."""
        token = session.token
        assert token is not None
        try:
            if token != self.store.codec.decode(token.encoded):
                raise MalformedTokenError("Session token does not match its encoded form.")
            if token.address != session.address:
                raise MalformedTokenError("Session token belongs to another address.")
            self.store.validate(token)
        except TokenError as error:
            logger.debug("Untrusted session: %s", error)
            return False
        return True

    def _gate_player(self, session: UserSession) -> Optional[RejectedMove]:
        state = self.state(session)
        if state.auth_state == AuthState.UNAUTHENTICATED:
            return self._reject(RejectionReason.UNAUTHENTICATED, "Connect your wallet to play.")
        if state.auth_state == AuthState.OBSERVER:
            return self._reject(
                RejectionReason.OBSERVER, "You are watching this game; only seated players can move."
            )
        return None

    def _reject(
        self,
        reason: RejectionReason,
        message: str,
        violation: Optional[MoveViolation] = None,
    ) -> RejectedMove:
        logger.info("Rejected request: %s (%s)", reason, message)
        return RejectedMove(reason=reason, message=message, violation=violation)
