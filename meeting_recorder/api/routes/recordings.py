"""
Recording REST endpoints.

Thin adapters over ``RecordingLifecycle``: every status change goes
through the lifecycle so the transition rules hold for API clients too.
Finishing a recording here hands it to the insight workflow exactly as a
local capture session does.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from meeting_recorder.core.exceptions import MeetingRecorderError
from meeting_recorder.core.models import (
    DeleteRecordingResponse,
    RecordingCreate,
    RecordingFinish,
    RecordingResponse,
    RecordingStatus,
    RecordingSummary,
    TranscriptUpdate,
)
from meeting_recorder.services.lifecycle import RecordingLifecycle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recordings", tags=["recordings"])


def get_lifecycle(request: Request) -> RecordingLifecycle:
    """Return the lifecycle wired to the app's workflow runner."""
    lifecycle = getattr(request.app.state, "lifecycle", None)
    if lifecycle is None:
        lifecycle = RecordingLifecycle()
        request.app.state.lifecycle = lifecycle
    return lifecycle


def _to_response(recording) -> RecordingResponse:
    return RecordingResponse(
        id=recording.id,
        title=recording.title,
        duration=recording.duration,
        status=RecordingStatus(recording.status),
        created_at=recording.created_at,
        transcription=recording.transcription or "",
        insights=recording.insights,
        error_message=recording.error_message,
    )


def _to_summary(recording) -> RecordingSummary:
    return RecordingSummary(
        id=recording.id,
        title=recording.title,
        duration=recording.duration,
        status=RecordingStatus(recording.status),
        created_at=recording.created_at,
    )


@router.post("", response_model=RecordingResponse, status_code=201)
async def create_recording(
    body: RecordingCreate | None = None,
    lifecycle: RecordingLifecycle = Depends(get_lifecycle),
):
    """Create a recording in the *recording* state."""
    recording_id = await lifecycle.create(body.title if body else None)
    return _to_response(await lifecycle.get(recording_id))


@router.get("", response_model=list[RecordingSummary])
async def list_recordings(
    limit: int = Query(50, ge=1, le=200),
    status: RecordingStatus | None = Query(None),
    lifecycle: RecordingLifecycle = Depends(get_lifecycle),
):
    """List recordings newest-first."""
    recordings = await lifecycle.list_recent(limit=limit, status=status)
    return [_to_summary(r) for r in recordings]


@router.get("/{recording_id}", response_model=RecordingResponse)
async def get_recording(
    recording_id: int,
    lifecycle: RecordingLifecycle = Depends(get_lifecycle),
):
    """Get one recording including transcript and insights."""
    return _to_response(await lifecycle.get(recording_id))


@router.put("/{recording_id}/transcription", response_model=RecordingResponse)
async def update_transcription(
    recording_id: int,
    body: TranscriptUpdate,
    lifecycle: RecordingLifecycle = Depends(get_lifecycle),
):
    """Replace the committed transcript of a recording still being captured."""
    recording = await lifecycle.get(recording_id)
    if recording.status != RecordingStatus.recording:
        raise MeetingRecorderError(
            detail=f"Recording {recording_id} is no longer capturing (status={recording.status})",
            code="RECORDING_NOT_ACTIVE",
            status_code=409,
        )
    await lifecycle.save_transcript(recording_id, body.text)
    return _to_response(await lifecycle.get(recording_id))


@router.post("/{recording_id}/finish", response_model=RecordingResponse)
async def finish_recording(
    recording_id: int,
    body: RecordingFinish,
    lifecycle: RecordingLifecycle = Depends(get_lifecycle),
):
    """Hand a recording off to insight generation."""
    recording = await lifecycle.finish(recording_id, body.duration, body.transcription)
    return _to_response(recording)


@router.delete("/{recording_id}", response_model=DeleteRecordingResponse)
async def delete_recording(
    recording_id: int,
    lifecycle: RecordingLifecycle = Depends(get_lifecycle),
):
    """Discard a recording that is not being post-processed."""
    await lifecycle.discard(recording_id)
    logger.info("Recording %s deleted", recording_id)
    return DeleteRecordingResponse(id=recording_id)
