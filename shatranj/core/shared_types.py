"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    IN_PROGRESS = "in progress"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW_INSUFFICIENT_MATERIAL = "draw by insufficient material"
    DRAW_REPETITION = "draw by repetition"
    DRAW_FIFTY_HALF_MOVE_RULE = "draw by 50 half-moves"


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class Observer(StrEnum):
    """Seat of anyone who is not one of the two registered players. Read-only."""

    OBSERVER = "observer"


# --- What TurnResolver hands out: one of the two colors, or a seat in the audience.
Seat = Color | Observer


class PieceType(StrEnum):
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"


class MoveViolation(StrEnum):
    """Category of chess rule a rejected move broke (as reported by the rules engine)."""

    MALFORMED_MOVE = "malformed move"
    EMPTY_SQUARE = "no piece on the origin square"
    WRONG_SIDE_TO_MOVE = "wrong side to move"
    SQUARE_NOT_REACHABLE = "square not reachable"
    KING_LEFT_IN_CHECK = "king left in check"
    GAME_OVER = "game is over"
