"""Persisted recording state machine.

::

    recording -> processing -> completed
                            -> error

``recording`` is the only initial state and ``completed`` / ``error`` are
terminal. ``processing`` is entered once, by the finish handoff, which also
hands the recording to the insight workflow. Nothing ever moves backwards.

Every operation runs in its own transaction through ``get_session()`` so the
status is durable as soon as the call returns, independent of whether the
capturing process is still alive.
"""

import logging
from collections.abc import Callable

from meeting_recorder.core.exceptions import InvalidTransitionError
from meeting_recorder.core.models import RecordingStatus
from meeting_recorder.core.utils import default_title
from meeting_recorder.services.storage.database import get_session
from meeting_recorder.services.storage.models_db import Recording
from meeting_recorder.services.storage.repository import RecordingRepository

logger = logging.getLogger(__name__)

TRANSITIONS: dict[RecordingStatus, frozenset[RecordingStatus]] = {
    RecordingStatus.recording: frozenset({RecordingStatus.processing}),
    RecordingStatus.processing: frozenset({RecordingStatus.completed, RecordingStatus.error}),
    RecordingStatus.completed: frozenset(),
    RecordingStatus.error: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    """Whether *current* may move to *target* along the lifecycle graph."""
    return RecordingStatus(target) in TRANSITIONS[RecordingStatus(current)]


def _check(recording: Recording, target: RecordingStatus) -> None:
    if not can_transition(recording.status, target):
        raise InvalidTransitionError(recording.id, recording.status, target)


class RecordingLifecycle:
    """Drives recordings through their persisted statuses.

    Args:
        on_finished: Called with ``(recording_id, transcript)`` once a
            recording has entered *processing*; typically
            ``WorkflowRunner.submit``.
    """

    def __init__(self, on_finished: Callable[[int, str], object] | None = None) -> None:
        self._on_finished = on_finished

    async def create(self, title: str | None = None) -> int:
        """Create a recording in the *recording* state and return its ID."""
        async with get_session() as session:
            repo = RecordingRepository(session)
            recording = await repo.create_recording(title=title or default_title())
        logger.info("Created recording %s (%r)", recording.id, recording.title)
        return recording.id

    async def save_transcript(self, recording_id: int, text: str) -> None:
        """Persist the committed transcript of a recording still being captured."""
        async with get_session() as session:
            repo = RecordingRepository(session)
            recording = await repo.get_recording(recording_id)
            if recording.status != RecordingStatus.recording:
                logger.warning(
                    "Ignoring transcript write for recording %s in status %s",
                    recording_id,
                    recording.status,
                )
                return
            await repo.patch_recording(recording_id, transcription=text)

    async def finish(self, recording_id: int, duration: int, transcript: str) -> Recording:
        """Hand a captured recording off to post-processing.

        Writes the final duration and transcript, moves the recording to
        *processing*, then notifies ``on_finished``.

        Raises:
            InvalidTransitionError: If the recording is not in *recording*.
        """
        async with get_session() as session:
            repo = RecordingRepository(session)
            recording = await repo.get_recording(recording_id)
            _check(recording, RecordingStatus.processing)
            recording = await repo.patch_recording(
                recording_id,
                duration=max(int(duration), 0),
                transcription=transcript,
                status=RecordingStatus.processing,
            )
        logger.info(
            "Recording %s finished (duration=%ss, %s chars)",
            recording_id,
            recording.duration,
            len(transcript),
        )
        if self._on_finished is not None:
            self._on_finished(recording_id, transcript)
        return recording

    async def mark_processing(self, recording_id: int) -> Recording:
        """Ensure a recording is in *processing*; a no-op if it already is."""
        async with get_session() as session:
            repo = RecordingRepository(session)
            recording = await repo.get_recording(recording_id)
            if recording.status == RecordingStatus.processing:
                return recording
            _check(recording, RecordingStatus.processing)
            return await repo.patch_recording(recording_id, status=RecordingStatus.processing)

    async def complete(self, recording_id: int, insights: str) -> Recording:
        """Store the insight text and mark the recording *completed*."""
        async with get_session() as session:
            repo = RecordingRepository(session)
            recording = await repo.get_recording(recording_id)
            _check(recording, RecordingStatus.completed)
            recording = await repo.patch_recording(
                recording_id,
                insights=insights,
                error_message=None,
                status=RecordingStatus.completed,
            )
        logger.info("Recording %s completed", recording_id)
        return recording

    async def fail(self, recording_id: int, message: str) -> Recording:
        """Record a terminal failure message and mark the recording *error*."""
        async with get_session() as session:
            repo = RecordingRepository(session)
            recording = await repo.get_recording(recording_id)
            _check(recording, RecordingStatus.error)
            recording = await repo.patch_recording(
                recording_id,
                error_message=message,
                status=RecordingStatus.error,
            )
        logger.warning("Recording %s failed: %s", recording_id, message)
        return recording

    async def get(self, recording_id: int) -> Recording:
        async with get_session() as session:
            return await RecordingRepository(session).get_recording(recording_id)

    async def list_recent(self, limit: int = 50, status: str | None = None) -> list[Recording]:
        """Return recordings newest-first."""
        async with get_session() as session:
            repo = RecordingRepository(session)
            return await repo.list_recordings(limit=limit, status=status)

    async def discard(self, recording_id: int) -> None:
        """Delete a recording that is not being post-processed.

        Raises:
            InvalidTransitionError: If the insight workflow still owns it.
        """
        async with get_session() as session:
            repo = RecordingRepository(session)
            recording = await repo.get_recording(recording_id)
            if recording.status == RecordingStatus.processing:
                raise InvalidTransitionError(recording_id, recording.status, "discarded")
            await repo.delete_recording(recording_id)
