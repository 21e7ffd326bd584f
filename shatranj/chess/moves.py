"""Move descriptor handed to the rules engine."""

from dataclasses import dataclass
from typing import Optional, Self

from shatranj.chess.fen import is_valid_square
from shatranj.core.shared_types import PieceType

PROMOTION_LETTERS: dict[PieceType, str] = {
    PieceType.KNIGHT: "n",
    PieceType.BISHOP: "b",
    PieceType.ROOK: "r",
    PieceType.QUEEN: "q",
}
LETTER_TO_PROMOTION: dict[str, PieceType] = {
    letter: piece for piece, letter in PROMOTION_LETTERS.items()
}


@dataclass(frozen=True)
class Move:
    """
    Universal Chess Interface:
    ---
    One of the standard chess notations for moves

    examples:
    * "e2e4": move the piece that was on e2 to e4
    * "e7e8q": (pawn) moves from e7 to e8 and promotes to a queen (the q)
    * "e1g1": the king castles king side
    """

    from_square: str
    to_square: str
    promote_to: Optional[PieceType] = None

    @classmethod
    def from_uci(cls, uci: str) -> Self:
        """Parse UCI. Shape only: ValueError if this cannot be a move on an 8x8 board."""
        uci = uci.strip()
        if len(uci) not in (4, 5):
            raise ValueError(f"Cannot interpret {uci!r} as a UCI move.")

        from_square, to_square = uci[:2], uci[2:4]
        if not (is_valid_square(from_square) and is_valid_square(to_square)):
            raise ValueError(f"Cannot interpret {uci!r} as a UCI move.")

        promote_to = None
        if len(uci) == 5:
            if uci[4] not in LETTER_TO_PROMOTION:
                raise ValueError(f"Cannot promote to {uci[4]!r} in {uci!r}.")
            promote_to = LETTER_TO_PROMOTION[uci[4]]
        return cls(from_square, to_square, promote_to)

    def to_uci(self) -> str:
        promotion = PROMOTION_LETTERS[self.promote_to] if self.promote_to else ""
        return f"{self.from_square}{self.to_square}{promotion}"

    def __str__(self) -> str:
        return self.to_uci()


def build_uci(
    from_square_alg: str, to_square_alg: str, promotion: Optional[PieceType] = None
) -> str:
    """Combine the fields of a move request into UCI."""
    return Move(from_square_alg, to_square_alg, promotion).to_uci()
