"""Wire the layers together from Settings."""

from sqlalchemy.orm import Session

from shatranj.auth.issuer import SessionTokenIssuer
from shatranj.auth.store import SessionStore
from shatranj.auth.token import TokenCodec
from shatranj.auth.verifier import SignatureVerifier
from shatranj.chess.position import PositionState
from shatranj.chess.rules import PythonChessRules
from shatranj.config.settings import Settings, get_settings
from shatranj.core.clock import Clock, utc_now
from shatranj.core.logging import configure_logging
from shatranj.db.sql_repository import SQLSessionRecordRepository
from shatranj.game.session import GameSession
from shatranj.game.turns import Roster
from shatranj.services.play_service import PlayService


def build_game_session(
    db_session: Session, settings: Settings | None = None, clock: Clock = utc_now
) -> GameSession:
    """One match, with its session store backed by `db_session`."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    codec = TokenCodec(settings.TOKEN_SECRET_KEY, settings.TOKEN_ALGORITHM)
    verifier = SignatureVerifier()
    store = SessionStore(
        repository=SQLSessionRecordRepository(db_session),
        codec=codec,
        verifier=verifier,
        validity=settings.session_validity,
        path=settings.COOKIE_PATH,
        same_site=settings.COOKIE_SAME_SITE,
        clock=clock,
    )
    issuer = SessionTokenIssuer(
        codec=codec, verifier=verifier, validity=settings.session_validity, clock=clock
    )
    store.init()
    return GameSession(
        position=PositionState(PythonChessRules()),
        roster=Roster.from_settings(settings),
        store=store,
        issuer=issuer,
    )


def build_play_service(
    db_session: Session, settings: Settings | None = None, clock: Clock = utc_now
) -> PlayService:
    return PlayService(build_game_session(db_session, settings, clock))
