"""Generate database session"""

from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from shatranj.config.settings import Settings, get_settings
from shatranj.db.schema import Base


def create_db_engine(settings: Settings | None = None) -> Engine:
    """Engine for the configured database. Ensures all tables are created."""
    settings = settings or get_settings()
    engine = create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    Base.metadata.create_all(bind=engine)
    return engine


def get_db(engine: Engine | None = None) -> Generator[Session, None, None]:
    session_local = sessionmaker(bind=engine or create_db_engine())
    db = session_local()
    try:
        yield db
    finally:
        db.close()
