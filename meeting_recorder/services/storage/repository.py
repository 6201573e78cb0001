"""
CRUD repository for the ``recordings`` table.

``RecordingRepository`` receives an ``AsyncSession`` and provides the
create / patch / get / list / delete operations the rest of the
application relies on.  It calls ``flush()`` rather than ``commit()`` so
that transaction boundaries are controlled by the caller (typically
:func:`get_session`).
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_recorder.core.exceptions import RecordingNotFoundError
from meeting_recorder.services.storage.models_db import Recording

logger = logging.getLogger(__name__)

# Columns a caller may overwrite through ``patch_recording``.
PATCHABLE_FIELDS = frozenset(
    {"title", "duration", "status", "transcription", "insights", "error_message"}
)


class RecordingRepository:
    """Data-access layer for recordings.

    Patches are last-writer-wins with no optimistic-concurrency check;
    at most one session writes a given recording at a time.

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_recording(self, title: str) -> Recording:
        """Create and return a new recording with status *recording*."""
        recording = Recording(
            title=title,
            duration=0,
            status="recording",
            transcription="",
        )
        self._session.add(recording)
        await self._session.flush()
        return recording

    async def find_recording(self, recording_id: int) -> Recording | None:
        """Return a recording by ID, or ``None`` when absent."""
        return await self._session.get(Recording, recording_id)

    async def get_recording(self, recording_id: int) -> Recording:
        """Return a recording by ID or raise :class:`RecordingNotFoundError`."""
        recording = await self.find_recording(recording_id)
        if recording is None:
            raise RecordingNotFoundError(recording_id)
        return recording

    async def list_recordings(
        self,
        limit: int = 50,
        offset: int = 0,
        status: str | None = None,
    ) -> list[Recording]:
        """Return recordings newest-first, optionally filtered by *status*."""
        stmt = select(Recording).order_by(Recording.id.desc()).limit(limit).offset(offset)
        if status is not None:
            stmt = stmt.where(Recording.status == status)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def patch_recording(self, recording_id: int, **fields) -> Recording:
        """Overwrite the given columns of a recording.

        Raises:
            ValueError: If a field is not patchable.
            RecordingNotFoundError: If the recording does not exist.
        """
        unknown = set(fields) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot patch recording fields: {sorted(unknown)}")

        recording = await self.get_recording(recording_id)
        for name, value in fields.items():
            setattr(recording, name, value)
        await self._session.flush()
        return recording

    async def delete_recording(self, recording_id: int) -> None:
        """Delete a recording."""
        recording = await self.get_recording(recording_id)
        await self._session.delete(recording)
        await self._session.flush()
        logger.info("Deleted recording %s", recording_id)
