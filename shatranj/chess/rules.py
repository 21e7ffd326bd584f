"""
Rules engine boundary.

PositionState never decides legality itself: it asks a LegalityChecker. The production checker wraps python-chess;
tests can swap in anything that honours the protocol.
"""

from typing import Protocol, Sequence

import chess

from shatranj.chess.fen import validate_fen
from shatranj.chess.moves import Move
from shatranj.core.exceptions import IllegalMoveError, MalformedPositionError
from shatranj.core.shared_types import Color, MoveViolation, Status


class LegalityChecker(Protocol):
    """Everything PositionState needs from a chess rules engine. All positions are FEN strings."""

    def normalize(self, fen: str) -> str:
        """Canonical FEN of a playable position. Raises MalformedPositionError."""
        ...

    def apply(self, fen: str, move: Move) -> str:
        """FEN after playing `move`. Raises IllegalMoveError carrying the violated rule."""
        ...

    def side_to_move(self, fen: str) -> Color: ...

    def legal_moves(self, fen: str) -> list[str]:
        """UCI notation of every legal move."""
        ...

    def status(self, starting_fen: str, moves: Sequence[str]) -> Status:
        """Game status after replaying `moves` from `starting_fen` (repetition needs the whole line)."""
        ...


class PythonChessRules:
    """LegalityChecker backed by python-chess."""

    def normalize(self, fen: str) -> str:
        board = self._board(fen)
        status = board.status()
        if status != chess.STATUS_VALID:
            raise MalformedPositionError(f"position cannot be played ({status!r})", fen)
        return board.fen()

    def apply(self, fen: str, move: Move) -> str:
        board = self._board(fen)
        candidate = self._classify(board, move)
        board.push(candidate)
        return board.fen()

    def side_to_move(self, fen: str) -> Color:
        return Color.WHITE if self._board(fen).turn == chess.WHITE else Color.BLACK

    def legal_moves(self, fen: str) -> list[str]:
        return sorted(move.uci() for move in self._board(fen).legal_moves)

    def status(self, starting_fen: str, moves: Sequence[str]) -> Status:
        board = self._board(starting_fen)
        for uci in moves:
            board.push_uci(uci)

        if board.is_checkmate():
            return Status.CHECKMATE
        if board.is_stalemate():
            return Status.STALEMATE
        if board.is_insufficient_material():
            return Status.DRAW_INSUFFICIENT_MATERIAL
        if board.can_claim_threefold_repetition():
            return Status.DRAW_REPETITION
        if board.can_claim_fifty_moves():
            return Status.DRAW_FIFTY_HALF_MOVE_RULE
        return Status.IN_PROGRESS

    # -- PRIVATE HELPERS ---
    def _board(self, fen: str) -> chess.Board:
        fen = validate_fen(fen)
        try:
            return chess.Board(fen)
        except ValueError as error:
            raise MalformedPositionError(str(error), fen) from error

    def _classify(self, board: chess.Board, move: Move) -> chess.Move:
        """
        Find out which rule (if any) the move breaks
        ----

        1. the game must still be going on
        2. there must be a piece on the origin square
        3. ... of the color that is to move
        4. the piece must be able to reach the target square (pseudo-legal)
        5. the move may not leave your own king in check
        """
        uci = move.to_uci()
        try:
            candidate = chess.Move.from_uci(uci)
        except ValueError as error:
            raise IllegalMoveError(MoveViolation.MALFORMED_MOVE, uci) from error

        if board.is_game_over():
            raise IllegalMoveError(MoveViolation.GAME_OVER, uci)

        piece = board.piece_at(candidate.from_square)
        if piece is None:
            raise IllegalMoveError(MoveViolation.EMPTY_SQUARE, uci)

        if piece.color != board.turn:
            raise IllegalMoveError(MoveViolation.WRONG_SIDE_TO_MOVE, uci)

        if not board.is_pseudo_legal(candidate):
            raise IllegalMoveError(MoveViolation.SQUARE_NOT_REACHABLE, uci)

        if not board.is_legal(candidate):
            raise IllegalMoveError(MoveViolation.KING_LEFT_IN_CHECK, uci)
        return candidate
