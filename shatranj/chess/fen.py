"""
Structural validation of FEN strings.

FEN, or Forsyth-Edwards Notation, is a standard notation for describing a particular board position of a chess game.

<board position string> <active color> <castling rights> <en passant square> <# half move clock> <number turns played>

ex) The standard starting position has a FEN
rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1
i.e. it is white to move, all castling options available, no en passant square, no half moves and we are in the first turn.

Only the shape of the string gets checked here. Whether the position can actually be played (one king each, side not to
move is not in check, ...) is for the rules engine to decide.
"""

from string import ascii_lowercase

from shatranj.core.exceptions import MalformedPositionError
from shatranj.core.shared_types import Color

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

# Chess board is always 8x8
BOARD_DIMENSIONS = (8, 8)
PIECE_LETTERS = frozenset("pnbrqk")
CASTLING_ORDER = "KQkq"
COLOR_CODES = {"w": Color.WHITE, "b": Color.BLACK}


def validate_fen(fen: str) -> str:
    """
    Raise MalformedPositionError (with the reason) unless the string follows proper FEN notation.
    Returns the FEN with surrounding whitespace removed.
    """
    if not isinstance(fen, str):
        raise MalformedPositionError("not a string", str(fen))

    fen = fen.strip()
    # there should be 6 parts to the string
    parts = fen.split(" ")
    if len(parts) != 6:
        raise MalformedPositionError(
            f"expected 6 space-separated fields, got {len(parts)}", fen
        )

    position, color, castling, en_passant, half_moves, full_moves = parts
    if not is_valid_position(position):
        raise MalformedPositionError(f"invalid piece placement {position!r}", fen)

    if not is_valid_color_code(color):
        raise MalformedPositionError(f"invalid side to move {color!r}", fen)

    if not is_valid_castling_rights(castling):
        raise MalformedPositionError(f"invalid castling rights {castling!r}", fen)

    if not is_valid_en_passant(en_passant, color):
        raise MalformedPositionError(f"invalid en passant square {en_passant!r}", fen)

    if not (is_valid_move_counter(half_moves) and is_valid_move_counter(full_moves)):
        raise MalformedPositionError(
            f"invalid move counters {half_moves!r} {full_moves!r}", fen
        )
    if int(full_moves) < 1:
        raise MalformedPositionError("full move number starts at 1", fen)
    return fen


def is_valid_position(position: str) -> bool:
    """Only check the part of the FEN encoding for the board position."""
    num_files, num_ranks = BOARD_DIMENSIONS
    rank_fens = position.split("/")
    if len(rank_fens) != num_ranks:
        return False

    for rank_fen in rank_fens:
        file_count = 0
        for character in rank_fen:
            if character.isdigit() and character != "0":
                file_count += int(character)
            elif character.lower() in PIECE_LETTERS:
                file_count += 1
            else:
                return False

        # make sure you are creating a correctly sized board
        if file_count != num_files:
            return False
    return True


def is_valid_color_code(color: str) -> bool:
    return color in COLOR_CODES


def is_valid_castling_rights(castling: str) -> bool:
    """Either '-' or a non-empty subsequence of 'KQkq' (rights keep their order)."""
    if castling == "-":
        return True
    remaining = iter(CASTLING_ORDER)
    return bool(castling) and all(character in remaining for character in castling)


def is_valid_en_passant(en_passant: str, color: str) -> bool:
    """
    '-' or the square a pawn skipped over in the last move.
    That square is on the 6th rank when white is to move, and on the 3rd rank when black is.
    """
    if en_passant == "-":
        return True
    if not is_valid_square(en_passant):
        return False
    expected_rank = "6" if color == "w" else "3"
    return en_passant[1] == expected_rank


def is_valid_square(square: str) -> bool:
    """Valid square should be a letter for the file + a number for the rank"""
    num_files, num_ranks = BOARD_DIMENSIONS
    if len(square) != 2:
        return False

    file_char, rank_char = square[0], square[1]
    if file_char not in ascii_lowercase[:num_files]:
        return False
    return rank_char.isdigit() and 1 <= int(rank_char) <= num_ranks


def is_valid_move_counter(counter: str) -> bool:
    return counter.isdigit()


def side_to_move(fen: str) -> Color:
    """Active color of a FEN that already passed validation."""
    return COLOR_CODES[fen.split(" ")[1]]
