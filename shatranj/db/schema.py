"""Database tables / schema"""

from datetime import datetime

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from shatranj.core.clock import utc_now


class Base(DeclarativeBase):
    pass


class DBSessionRecord(Base):
    __tablename__ = "session_records"
    key: Mapped[str] = mapped_column(primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    path: Mapped[str] = mapped_column(default="/")
    same_site: Mapped[str] = mapped_column(default="strict")
    max_age: Mapped[int]
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
