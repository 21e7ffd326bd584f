"""Protocol repository (SQLAlchemy implementation in sql_repository.py, tests use a dictionary)"""

from typing import Protocol

from shatranj.core.models import SessionRecord


class SessionRecordRepository(Protocol):
    """Persistence layer for the session records"""

    def get_record(self, key: str) -> SessionRecord | None:
        """Get record by key, if it exists."""
        ...

    def put_record(self, record: SessionRecord) -> SessionRecord:
        """Create the record or overwrite the one with the same key."""
        ...

    def delete_record(self, key: str) -> SessionRecord | None:
        """Remove a record. Returns what was removed, if anything."""
        ...
