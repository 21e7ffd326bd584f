"""
PositionState: the one owner of the current position and the moves that led to it.

Invariants
----
* the position only changes by applying one legal move, or by an explicit `load_position`
* the move record is append-only; undo replays a shorter prefix from the starting position
* every operation either commits completely or leaves the state exactly as it was
"""

import logging
from dataclasses import dataclass

from shatranj.chess.fen import STARTING_FEN
from shatranj.chess.moves import Move
from shatranj.chess.rules import LegalityChecker, PythonChessRules
from shatranj.core.exceptions import GameError, IllegalMoveError
from shatranj.core.shared_types import Color, MoveViolation, Status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Snapshot:
    """Everything PositionState owns. Replaced as a whole, never edited in place."""

    starting_fen: str
    current_fen: str
    moves_uci: tuple[str, ...]
    history_fen: tuple[str, ...]  # FEN before each move, same length as moves_uci


class PositionState:
    """Canonical chess position + move record, with legality delegated to a LegalityChecker."""

    def __init__(
        self, rules: LegalityChecker | None = None, starting_fen: str = STARTING_FEN
    ) -> None:
        self.rules = rules or PythonChessRules()
        fen = self.rules.normalize(starting_fen)
        self._state = _Snapshot(
            starting_fen=fen, current_fen=fen, moves_uci=(), history_fen=()
        )

    # --- queries ---
    @property
    def starting_fen(self) -> str:
        return self._state.starting_fen

    @property
    def move_record(self) -> tuple[str, ...]:
        return self._state.moves_uci

    @property
    def history_fen(self) -> tuple[str, ...]:
        return self._state.history_fen

    def serialize(self) -> str:
        """Current position as FEN."""
        return self._state.current_fen

    def current_side_to_move(self) -> Color:
        return self.rules.side_to_move(self._state.current_fen)

    def legal_moves(self) -> list[str]:
        return self.rules.legal_moves(self._state.current_fen)

    def status(self) -> Status:
        return self.rules.status(self._state.starting_fen, self._state.moves_uci)

    # --- mutations ---
    def apply_move(self, move: Move | str) -> str:
        """
        Play one move and return the new FEN.
        ----
        Raises IllegalMoveError (with the violated rule) and leaves everything untouched if the rules engine refuses.
        """
        if isinstance(move, str):
            try:
                move = Move.from_uci(move)
            except ValueError as error:
                raise IllegalMoveError(MoveViolation.MALFORMED_MOVE, move) from error

        before = self._state
        new_fen = self.rules.apply(before.current_fen, move)

        # commit in one assignment
        self._state = _Snapshot(
            starting_fen=before.starting_fen,
            current_fen=new_fen,
            moves_uci=before.moves_uci + (move.to_uci(),),
            history_fen=before.history_fen + (before.current_fen,),
        )
        logger.debug("Applied %s -> %s", move, new_fen)
        return new_fen

    def load_position(self, fen: str) -> str:
        """
        Replace the whole position and clear the move record.
        ----
        Raises MalformedPositionError and keeps the previous state if the FEN is rejected.
        """
        normalized = self.rules.normalize(fen)
        self._state = _Snapshot(
            starting_fen=normalized, current_fen=normalized, moves_uci=(), history_fen=()
        )
        logger.info("Loaded position %s", normalized)
        return normalized

    def undo(self, count: int = 1) -> str:
        """
        Take back the last `count` moves by replaying the remaining prefix from the starting position.
        Returns the resulting FEN.
        """
        if count < 0 or count > len(self._state.moves_uci):
            raise GameError(
                f"Cannot take back {count} move(s); {len(self._state.moves_uci)} played."
            )

        before = self._state
        kept = before.moves_uci[: len(before.moves_uci) - count]
        fen = before.starting_fen
        history: list[str] = []
        for uci in kept:
            history.append(fen)
            fen = self.rules.apply(fen, Move.from_uci(uci))

        self._state = _Snapshot(
            starting_fen=before.starting_fen,
            current_fen=fen,
            moves_uci=kept,
            history_fen=tuple(history),
        )
        return fen
