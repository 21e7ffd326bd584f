"""Orchestration of communication from the request/response models to the game session (and the reverse direction)."""

from shatranj.api.models import (
    GameResponse,
    LegalMovesResponse,
    LoadPositionRequest,
    MoveRequest,
    SessionResponse,
    UndoRequest,
)
from shatranj.auth.store import UserSession
from shatranj.chess.moves import build_uci
from shatranj.game.session import GameSession, RejectedMove


class PlayService:
    """What the play page talks to."""

    def __init__(self, game: GameSession) -> None:
        self.game = game

    # -- Page logic ---
    def get_game_state(self) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by the frontend to check when it is the player's turn for instance.
        """
        return self._create_game_response(self.game.current_session())

    def make_move(self, request: MoveRequest) -> GameResponse:
        """Make a move attempt on behalf of whoever is logged in."""

        session = self.game.current_session()

        # Parse data in MoveRequest to UCI notation
        move_uci = build_uci(
            from_square_alg=request.from_square,
            to_square_alg=request.to_square,
            promotion=request.promote_to,
        )
        outcome = self.game.submit_move(session, move_uci)
        return self._create_game_response(session, outcome)

    def load_position(self, request: LoadPositionRequest) -> GameResponse:
        """Set up the board from a FEN string."""
        session = self.game.current_session()
        outcome = self.game.load_position(session, request.fen)
        return self._create_game_response(session, outcome)

    def undo_move(self, request: UndoRequest) -> GameResponse:
        session = self.game.current_session()
        outcome = self.game.undo(session, request.count)
        return self._create_game_response(session, outcome)

    def legal_moves(self) -> LegalMovesResponse:
        """Legal moves of the side to move (available to everyone, e.g. to highlight squares)."""
        return LegalMovesResponse(
            color=self.game.position.current_side_to_move(),
            legal_moves=self.game.position.legal_moves(),
        )

    def session_info(self) -> SessionResponse:
        session = self.game.current_session()
        state = self.game.state(session)
        return SessionResponse(
            authenticated=session.is_authenticated,
            address=str(session.address) if session.address else None,
            display_address=session.address.truncated() if session.address else None,
            state=state.auth_state,
            seat=state.seat,
            expires_at=session.token.expires_at.isoformat() if session.token else None,
        )

    def logout(self) -> SessionResponse:
        self.game.logout()
        return self.session_info()

    # -- Internal helpers --
    def _create_game_response(
        self, session: UserSession, outcome: str | RejectedMove | None = None
    ) -> GameResponse:
        """Convert the board + viewer into a GameResponse. A RejectedMove is reported next to the unchanged board."""
        position = self.game.position
        state = self.game.state(session)
        rejected = outcome if isinstance(outcome, RejectedMove) else None
        return GameResponse(
            players=self.game.roster.as_dict(),
            fen_state=position.serialize(),
            starting_state=position.starting_fen,
            move_history=list(position.move_record),
            side_to_move=position.current_side_to_move(),
            status=position.status(),
            viewer_seat=state.seat,
            orientation=self.game.orientation(session),
            accepted=rejected is None,
            rejection_reason=rejected.reason if rejected else None,
            rejection_message=rejected.message if rejected else None,
        )
