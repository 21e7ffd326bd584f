"""Requests and Response models"""

from typing import Optional

from pydantic import BaseModel, field_validator

from shatranj.core.exceptions import InvalidRequestError
from shatranj.core.shared_types import Color, PieceType, Status

PieceColor = str
PlayerName = str


# --- REQUEST MODELS ---
class MoveRequest(BaseModel):
    from_square: str
    to_square: str
    promote_to: Optional[PieceType] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        def _is_algebraic_notation(value: str) -> bool:
            if len(value) != 2:
                return False

            first_character = value[0]
            second_character = value[1]
            if not (first_character in "abcdefgh" and second_character in "12345678"):
                return False
            return True

        value = value.strip().lower()
        if not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value


class LoadPositionRequest(BaseModel):
    fen: str

    @field_validator("fen")
    @classmethod
    def validate_fen(cls, value: str) -> str:
        parts = value.strip().split(" ")
        if len(parts) != 6:
            raise InvalidRequestError(
                "FEN string must contain 6 space-separated parts."
            )
        return value.strip()


class UndoRequest(BaseModel):
    count: int = 1

    @field_validator("count")
    @classmethod
    def validate_count(cls, value: int) -> int:
        if value < 1:
            raise InvalidRequestError("Can only take back a positive number of moves.")
        return value


# --- RESPONSE MODELS ---
class GameResponse(BaseModel):
    players: dict[PieceColor, PlayerName]
    fen_state: str
    starting_state: str
    move_history: list[str]
    side_to_move: Color
    status: Status
    viewer_seat: str
    orientation: Color
    accepted: bool = True
    rejection_reason: Optional[str] = None
    rejection_message: Optional[str] = None


class LegalMovesResponse(BaseModel):
    color: Color
    legal_moves: list[str]


class SessionResponse(BaseModel):
    authenticated: bool
    address: Optional[str] = None
    display_address: Optional[str] = None
    state: str
    seat: str
    expires_at: Optional[str] = None
