"""Implementation of SessionRecordRepository using SQLAlchemy"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from shatranj.core.clock import as_utc
from shatranj.core.models import SessionRecord
from shatranj.db.schema import DBSessionRecord


class SQLSessionRecordRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_record(self, key: str) -> SessionRecord | None:
        """Get record by key, if it exists."""
        record_db = self._fetch_record(key)
        if record_db:
            return self._to_model(record_db)
        return None

    def put_record(self, record: SessionRecord) -> SessionRecord:
        """Create the record or overwrite the one with the same key."""
        record_db = self._fetch_record(record.key)
        if record_db is None:
            record_db = DBSessionRecord(key=record.key)
            self.db.add(record_db)
        record_db.value = record.value
        record_db.path = record.path
        record_db.same_site = record.same_site
        record_db.max_age = record.max_age
        record_db.expires_at = record.expires_at
        self.db.commit()
        self.db.refresh(record_db)
        return self._to_model(record_db)

    def delete_record(self, key: str) -> SessionRecord | None:
        """Remove a record. Returns what was removed, if anything."""
        record_db = self._fetch_record(key)
        if not record_db:
            return None
        record = self._to_model(record_db)
        self.db.delete(record_db)
        self.db.commit()
        return record

    def _fetch_record(self, key: str) -> DBSessionRecord | None:
        query = select(DBSessionRecord).where(DBSessionRecord.key == key)
        return self.db.scalar(query)

    def _to_model(self, record_db: DBSessionRecord) -> SessionRecord:
        """Convert SQLAlchemy model to data transfer model."""
        return SessionRecord(
            key=record_db.key,
            value=record_db.value,
            path=record_db.path,
            same_site=record_db.same_site,
            max_age=record_db.max_age,
            expires_at=as_utc(record_db.expires_at),
        )
