"""
SQLAlchemy ORM models for the meeting recorder schema.

Tables: ``recordings``.
"""

from datetime import UTC, datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from meeting_recorder.services.storage.database import Base


class Recording(Base):
    """A single recording and everything derived from it."""

    __tablename__ = "recordings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255))
    duration: Mapped[int] = mapped_column(default=0)
    status: Mapped[str] = mapped_column(String(20), default="recording", index=True)
    transcription: Mapped[str] = mapped_column(Text, default="")
    insights: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<Recording id={self.id} status={self.status!r}>"
