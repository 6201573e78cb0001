"""
Pydantic v2 request / response models used across the API and services.

Recording, Streaming, Health, Error
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------


class RecordingStatus(StrEnum):
    """Persisted lifecycle states of a recording."""

    recording = "recording"
    processing = "processing"
    completed = "completed"
    error = "error"


class RecordingCreate(BaseModel):
    """POST /recordings request body (optional fields)."""

    title: str | None = None


class TranscriptUpdate(BaseModel):
    """PUT /recordings/{id}/transcription request body."""

    text: str


class RecordingFinish(BaseModel):
    """POST /recordings/{id}/finish request body."""

    duration: int = Field(ge=0)
    transcription: str = ""


class RecordingSummary(BaseModel):
    """Compact recording representation used by listings."""

    id: int
    title: str
    duration: int = 0
    status: RecordingStatus
    created_at: datetime


class RecordingResponse(RecordingSummary):
    """Full recording representation returned by the API."""

    transcription: str = ""
    insights: str | None = None
    error_message: str | None = None


class DeleteRecordingResponse(BaseModel):
    """DELETE /recordings/{id} response."""

    id: int
    deleted: bool = True


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------


class SessionState(StrEnum):
    """In-memory states of an interactive recording session."""

    idle = "idle"
    connecting = "connecting"
    active = "active"
    stopping = "stopping"


class StreamingConfig(BaseModel):
    """Connection parameters fixed for the lifetime of one streaming session."""

    sample_rate: int = 16000
    encoding: str = "pcm_s16le"
    format_turns: bool = True
    speech_model: str = "universal-streaming-english"

    def query_params(self) -> dict[str, str]:
        """Render the parameters as WebSocket query-string values."""
        return {
            "sample_rate": str(self.sample_rate),
            "encoding": self.encoding,
            "format_turns": "true" if self.format_turns else "false",
            "speech_model": self.speech_model,
        }


class StreamingTokenResponse(BaseModel):
    """POST /streaming/token response."""

    token: str
    expires_in: int


# ---------------------------------------------------------------------------
# Error
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    detail: str
    code: str
    timestamp: str
