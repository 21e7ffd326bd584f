"""Unit tests for shatranj/game/session.py"""

import asyncio
from datetime import timedelta
from typing import Optional

import pytest

from shatranj.auth.address import Address
from shatranj.auth.issuer import FlowStatus, SessionTokenIssuer
from shatranj.auth.store import ANONYMOUS, SessionStore, UserSession
from shatranj.auth.token import SessionToken, TokenCodec
from shatranj.auth.verifier import SignatureVerifier
from shatranj.auth.wallet import LocalAccountWallet
from shatranj.chess.fen import STARTING_FEN
from shatranj.chess.position import PositionState
from shatranj.core.exceptions import AddressMismatchError, WalletUnavailableError
from shatranj.core.shared_types import Color, MoveViolation, Observer
from shatranj.game.session import (
    AuthState,
    GameSession,
    RejectedMove,
    RejectionReason,
    SessionState,
)
from shatranj.game.turns import Player, Roster, TurnResolver

AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
AFTER_E4_E5 = "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2"


# --- MOCK DEPENDENCIES ----
class RecordedSignatures(SignatureVerifier):
    """Verifier for addresses without a key: accepts exactly the signatures it handed out."""

    def __init__(self) -> None:
        self.signed: dict[tuple[str, str], Address] = {}

    def sign(self, address: str, message: str) -> str:
        signature = "0x" + format(len(self.signed) + 1, "0130x")
        self.signed[(message, signature)] = Address(address)
        return signature

    def recover(self, message: str, signature: str) -> Optional[Address]:
        return self.signed.get((message, signature))


class ImpostorWallet(LocalAccountWallet):
    """Reports one account but signs with another key."""

    def __init__(self, shown: LocalAccountWallet, signer: LocalAccountWallet) -> None:
        super().__init__(signer.account)
        self.shown = shown

    async def request_accounts(self) -> list[str]:
        return [self.shown.address]

    async def sign_message(self, address: str, message: bytes) -> str:
        return await super().sign_message(self.account.address, message)


@pytest.fixture
def game(
    store: SessionStore,
    issuer: SessionTokenIssuer,
    white_wallet: LocalAccountWallet,
    black_wallet: LocalAccountWallet,
) -> GameSession:
    roster = Roster(
        white=Player("altstream", Address(white_wallet.address)),
        black=Player("rehesamay", Address(black_wallet.address)),
    )
    return GameSession(PositionState(), roster, store, issuer)


def _login(game: GameSession, wallet: LocalAccountWallet | None):
    return asyncio.run(game.authenticate(wallet))


def _board(game: GameSession) -> tuple:
    return (game.position.serialize(), game.position.move_record, game.position.history_fen)


def _session_for(
    address: str, codec: TokenCodec, clock, signature: str = "0x00", message: str = "signed elsewhere"
) -> UserSession:
    """Session carrying a JWT minted by `codec`, without going through a wallet."""
    token = codec.encode(
        address=Address(address),
        message=message,
        signature=signature,
        issued_at=clock.now,
        validity=timedelta(hours=24),
    )
    return UserSession(address=token.address, token=token)


# --- STATES ----
def test_visitor_starts_unauthenticated(game: GameSession) -> None:
    session = game.current_session()
    assert session == ANONYMOUS
    assert game.state(session) == SessionState(AuthState.UNAUTHENTICATED)
    assert game.state(session).seat == Observer.OBSERVER


def test_login_as_white(game: GameSession, white_wallet: LocalAccountWallet) -> None:
    result = _login(game, white_wallet)
    assert result.status == FlowStatus.SUCCESS

    session = game.current_session()
    assert session.address == Address(white_wallet.address)
    assert game.state(session) == SessionState(AuthState.PLAYER, Color.WHITE)


def test_login_as_stranger_makes_an_observer(
    game: GameSession, stranger_wallet: LocalAccountWallet
) -> None:
    _login(game, stranger_wallet)
    state = game.state(game.current_session())
    assert state.auth_state == AuthState.OBSERVER
    assert state.color is None


def test_repeated_loads_are_idempotent(game: GameSession, black_wallet: LocalAccountWallet) -> None:
    _login(game, black_wallet)
    states = {game.state(game.current_session()) for _ in range(3)}
    assert states == {SessionState(AuthState.PLAYER, Color.BLACK)}


def test_expiry_downgrades_at_next_read(
    game: GameSession, white_wallet: LocalAccountWallet, clock
) -> None:
    _login(game, white_wallet)
    stale = game.current_session()

    clock.advance(timedelta(hours=24))
    assert game.state(stale) == SessionState(AuthState.UNAUTHENTICATED)
    assert game.current_session() == ANONYMOUS


def test_logout(game: GameSession, white_wallet: LocalAccountWallet) -> None:
    _login(game, white_wallet)
    assert game.logout() == ANONYMOUS
    assert game.current_session() == ANONYMOUS


# --- FAILED LOGINS ----
def test_no_wallet_provider(game: GameSession, records) -> None:
    result = _login(game, None)

    assert result.status == FlowStatus.FAILURE
    assert isinstance(result.error, WalletUnavailableError)
    assert game.state(game.current_session()).auth_state == AuthState.UNAUTHENTICATED
    assert records.keys() == set()


def test_failed_login_keeps_existing_session(
    game: GameSession,
    white_wallet: LocalAccountWallet,
    black_wallet: LocalAccountWallet,
) -> None:
    """A signer / account mismatch only blocks the new login; the stored session stays."""
    _login(game, white_wallet)
    before = game.current_session()

    result = _login(game, ImpostorWallet(shown=black_wallet, signer=white_wallet))

    assert isinstance(result.error, AddressMismatchError)
    assert game.current_session() == before


def test_declined_signature_leaves_visitor_unauthenticated(game: GameSession, records) -> None:
    result = _login(game, LocalAccountWallet.create(approve=False))
    assert result.status == FlowStatus.FAILURE
    assert records.keys() == set()


# --- MOVES ----
def test_players_take_turns(
    game: GameSession,
    white_wallet: LocalAccountWallet,
    black_wallet: LocalAccountWallet,
) -> None:
    _login(game, white_wallet)
    assert game.submit_move(game.current_session(), "e2e4") == AFTER_E4

    _login(game, black_wallet)
    assert game.submit_move(game.current_session(), "e7e5") == AFTER_E4_E5
    assert game.position.move_record == ("e2e4", "e7e5")


def test_unauthenticated_move_is_rejected(game: GameSession) -> None:
    before = _board(game)
    outcome = game.submit_move(ANONYMOUS, "e2e4")

    assert isinstance(outcome, RejectedMove)
    assert outcome.reason == RejectionReason.UNAUTHENTICATED
    assert _board(game) == before


def test_observer_move_is_rejected(game: GameSession, stranger_wallet: LocalAccountWallet) -> None:
    _login(game, stranger_wallet)
    before = _board(game)
    outcome = game.submit_move(game.current_session(), "e2e4")

    assert isinstance(outcome, RejectedMove)
    assert outcome.reason == RejectionReason.OBSERVER
    assert _board(game) == before


def test_move_out_of_turn_is_rejected(game: GameSession, black_wallet: LocalAccountWallet) -> None:
    _login(game, black_wallet)
    session = game.current_session()
    before = _board(game)

    # white to move; black tries with a white pawn and with one of their own
    for move in ["e2e4", "e7e5"]:
        outcome = game.submit_move(session, move)
        assert isinstance(outcome, RejectedMove)
        assert outcome.reason == RejectionReason.NOT_YOUR_TURN
        assert "altstream" in outcome.message
    assert _board(game) == before
    assert game.current_session() == session


def test_illegal_move_is_rejected(game: GameSession, white_wallet: LocalAccountWallet) -> None:
    _login(game, white_wallet)
    before = _board(game)
    outcome = game.submit_move(game.current_session(), "e2e5")

    assert isinstance(outcome, RejectedMove)
    assert outcome.reason == RejectionReason.ILLEGAL_MOVE
    assert outcome.violation == MoveViolation.SQUARE_NOT_REACHABLE
    assert _board(game) == before


def test_expired_session_cannot_move(game: GameSession, white_wallet: LocalAccountWallet, clock) -> None:
    _login(game, white_wallet)
    session = game.current_session()
    clock.advance(timedelta(days=2))

    outcome = game.submit_move(session, "e2e4")
    assert isinstance(outcome, RejectedMove)
    assert outcome.reason == RejectionReason.UNAUTHENTICATED
    assert game.position.serialize() == STARTING_FEN


# --- BOARD MANAGEMENT ----
def test_player_loads_position(game: GameSession, white_wallet: LocalAccountWallet) -> None:
    _login(game, white_wallet)
    game.submit_move(game.current_session(), "d2d4")

    assert game.load_position(game.current_session(), AFTER_E4) == AFTER_E4
    assert game.position.move_record == ()


def test_malformed_position_is_rejected(game: GameSession, white_wallet: LocalAccountWallet) -> None:
    _login(game, white_wallet)
    game.submit_move(game.current_session(), "d2d4")
    before = _board(game)

    outcome = game.load_position(game.current_session(), "rnbqkbnr/pppppppp w KQkq - 0 1")
    assert isinstance(outcome, RejectedMove)
    assert outcome.reason == RejectionReason.MALFORMED_POSITION
    assert _board(game) == before


def test_observer_cannot_load_position(game: GameSession, stranger_wallet) -> None:
    _login(game, stranger_wallet)
    outcome = game.load_position(game.current_session(), AFTER_E4)
    assert isinstance(outcome, RejectedMove)
    assert outcome.reason == RejectionReason.OBSERVER
    assert game.position.serialize() == STARTING_FEN


def test_undo(game: GameSession, white_wallet: LocalAccountWallet) -> None:
    _login(game, white_wallet)
    session = game.current_session()
    game.submit_move(session, "e2e4")

    assert game.undo(session) == STARTING_FEN
    outcome = game.undo(session)
    assert isinstance(outcome, RejectedMove)
    assert outcome.reason == RejectionReason.NOTHING_TO_UNDO


def test_orientation(game: GameSession, black_wallet: LocalAccountWallet) -> None:
    assert game.orientation(ANONYMOUS) == Color.WHITE
    _login(game, black_wallet)
    assert game.orientation(game.current_session()) == Color.BLACK


# --- SCENARIOS ----
def test_roster_scenario_with_mixed_case_address(records, issuer, codec, clock) -> None:
    """
    Roster white 0xAAA1 / black 0xBBB2, session authenticated as 0xbbb2.
    Resolves to black; a white move is rejected; a legal black move is accepted and recorded.
    """
    roster = Roster(
        white=Player("white player", Address("0xAAA1")),
        black=Player("black player", Address("0xBBB2")),
    )
    signatures = RecordedSignatures()
    store = SessionStore(records, codec, signatures, clock=clock)
    game = GameSession(PositionState(starting_fen=AFTER_E4), roster, store, issuer)
    session = _session_for(
        "0xbbb2", codec, clock, signature=signatures.sign("0xbbb2", "login"), message="login"
    )

    assert TurnResolver().resolve(session.address, roster) == Color.BLACK
    assert game.state(session) == SessionState(AuthState.PLAYER, Color.BLACK)

    before = _board(game)
    outcome = game.submit_move(session, "d2d4")
    assert isinstance(outcome, RejectedMove)
    assert outcome.violation == MoveViolation.WRONG_SIDE_TO_MOVE
    assert _board(game) == before

    assert game.submit_move(session, "e7e6") == (
        "rnbqkbnr/pppp1ppp/4p3/8/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2"
    )
    assert game.position.move_record == ("e7e6",)


def test_expired_stored_token_scenario(
    game: GameSession,
    store: SessionStore,
    records,
    codec: TokenCodec,
    issuer: SessionTokenIssuer,
    white_wallet: LocalAccountWallet,
    clock,
) -> None:
    """Stored token with expiry in the past: load() gives None, storage is cleared, caller is an observer."""
    token = asyncio.run(issuer.issue(white_wallet)).token
    assert token is not None
    expired = codec.encode(
        address=token.address,
        message=token.message,
        signature=token.signature,
        issued_at=clock.now - timedelta(days=2),
        validity=timedelta(hours=24),
    )
    store.save(expired)

    assert store.load() is None
    assert records.keys() == set()
    assert game.resolver.resolve(store.load_address(), game.roster) == Observer.OBSERVER
    assert game.state(game.current_session()).auth_state == AuthState.UNAUTHENTICATED


# --- UNTRUSTED SESSIONS ----
def test_forged_wallet_signature_is_not_a_player(
    game: GameSession, codec: TokenCodec, clock, white_wallet: LocalAccountWallet
) -> None:
    """A well-formed JWT whose wallet signature was never produced by the wallet grants nothing."""
    session = _session_for(white_wallet.address, codec, clock, message="never signed")
    before = _board(game)

    assert game.state(session) == SessionState(AuthState.UNAUTHENTICATED)
    outcome = game.submit_move(session, "e2e4")
    assert isinstance(outcome, RejectedMove)
    assert outcome.reason == RejectionReason.UNAUTHENTICATED
    assert isinstance(game.load_position(session, AFTER_E4), RejectedMove)
    assert _board(game) == before


def test_session_without_jwt_is_not_a_player(
    game: GameSession, issuer: SessionTokenIssuer, white_wallet: LocalAccountWallet
) -> None:
    """Genuine wallet proof, but the token was assembled by hand rather than minted here."""
    token = asyncio.run(issuer.issue(white_wallet)).token
    assert token is not None
    unminted = SessionToken(
        address=token.address,
        issued_at=token.issued_at,
        expires_at=token.expires_at,
        message=token.message,
        signature=token.signature,
    )
    session = UserSession(address=unminted.address, token=unminted)

    assert game.state(session) == SessionState(AuthState.UNAUTHENTICATED)
    assert isinstance(game.submit_move(session, "e2e4"), RejectedMove)
    assert game.position.serialize() == STARTING_FEN


def test_jwt_from_another_secret_is_not_a_player(
    game: GameSession, issuer: SessionTokenIssuer, white_wallet: LocalAccountWallet, clock
) -> None:
    token = asyncio.run(issuer.issue(white_wallet)).token
    assert token is not None
    foreign = TokenCodec("some-other-secret").encode(
        address=token.address,
        message=token.message,
        signature=token.signature,
        issued_at=clock.now,
        validity=timedelta(hours=24),
    )
    session = UserSession(address=foreign.address, token=foreign)
    assert game.state(session) == SessionState(AuthState.UNAUTHENTICATED)


def test_token_of_another_address_is_not_a_player(
    game: GameSession,
    issuer: SessionTokenIssuer,
    white_wallet: LocalAccountWallet,
    black_wallet: LocalAccountWallet,
) -> None:
    token = asyncio.run(issuer.issue(white_wallet)).token
    assert token is not None
    session = UserSession(address=Address(black_wallet.address), token=token)
    assert game.state(session) == SessionState(AuthState.UNAUTHENTICATED)
