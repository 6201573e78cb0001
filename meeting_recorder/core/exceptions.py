"""
Meeting recorder exception hierarchy.

All application-specific exceptions inherit from MeetingRecorderError,
enabling centralized error handling in the API middleware layer and in
the interactive session.
"""

from datetime import UTC, datetime
from enum import StrEnum


class MeetingRecorderError(Exception):
    """Base exception for all meeting recorder errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "MEETING_RECORDER_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class RecordingNotFoundError(MeetingRecorderError):
    """Raised when a recording ID does not exist."""

    def __init__(self, recording_id: int | str) -> None:
        super().__init__(
            detail=f"Recording not found: {recording_id}",
            code="RECORDING_NOT_FOUND",
            status_code=404,
        )


class RecordingAlreadyActiveError(MeetingRecorderError):
    """Raised when trying to start a session while one is already running."""

    def __init__(self) -> None:
        super().__init__(
            detail="A recording is already active",
            code="RECORDING_ALREADY_ACTIVE",
            status_code=409,
        )


class InvalidTransitionError(MeetingRecorderError):
    """Raised when a status change would move a recording backwards or sideways."""

    def __init__(self, recording_id: int, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(
            detail=f"Recording {recording_id} cannot move from {current!r} to {target!r}",
            code="INVALID_TRANSITION",
            status_code=409,
        )


# ---------------------------------------------------------------------------
# Interactive capture
# ---------------------------------------------------------------------------


class CredentialError(MeetingRecorderError):
    """Raised when no streaming credential can be obtained."""

    def __init__(self, detail: str = "Streaming credential unavailable") -> None:
        super().__init__(detail=detail, code="CREDENTIAL_ERROR", status_code=503)


class DeviceError(MeetingRecorderError):
    """Raised when the capture device is denied or unavailable."""

    def __init__(self, detail: str = "Microphone unavailable") -> None:
        super().__init__(detail=detail, code="DEVICE_ERROR", status_code=500)


class ConnectFailure(StrEnum):
    """Why a streaming handshake did not complete."""

    unauthorized = "unauthorized"
    unreachable = "unreachable"
    rejected = "rejected"


class ConnectError(MeetingRecorderError):
    """Raised when the streaming WebSocket handshake fails."""

    def __init__(self, reason: ConnectFailure, detail: str = "") -> None:
        self.reason = reason
        super().__init__(
            detail=f"Streaming connection failed ({reason}){': ' + detail if detail else ''}",
            code="CONNECT_ERROR",
            status_code=502,
        )


class TransportError(MeetingRecorderError):
    """Raised on a mid-session socket failure or a malformed inbound payload."""

    def __init__(self, detail: str = "Streaming transport failed") -> None:
        super().__init__(detail=detail, code="TRANSPORT_ERROR", status_code=502)


class SendError(MeetingRecorderError):
    """Raised when a frame is sent on a transport that is not open."""

    def __init__(self, reason: str = "not_open") -> None:
        self.reason = reason
        super().__init__(
            detail=f"Cannot send audio frame: {reason}",
            code="SEND_ERROR",
            status_code=409,
        )


# ---------------------------------------------------------------------------
# Insight workflow
# ---------------------------------------------------------------------------


class WorkflowTransientError(MeetingRecorderError):
    """Summarization failure eligible for automatic retry."""

    def __init__(self, detail: str = "Insight generation temporarily failed") -> None:
        super().__init__(detail=detail, code="WORKFLOW_TRANSIENT", status_code=503)


class WorkflowTerminalError(MeetingRecorderError):
    """Summarization failure that will not be retried."""

    def __init__(self, detail: str = "Insight generation failed") -> None:
        super().__init__(detail=detail, code="WORKFLOW_TERMINAL", status_code=500)
