"""Wire codec for the AssemblyAI v3 streaming protocol.

Outbound audio is sent as raw binary frames; the only outbound JSON is the
terminate control message. Inbound messages are JSON objects discriminated
by ``type``: ``Begin``, ``Turn`` and ``Termination``. Unknown types decode
to ``None`` so newer server events never abort a session.
"""

import json
import logging
from dataclasses import dataclass

from meeting_recorder.core.exceptions import TransportError

logger = logging.getLogger(__name__)

TERMINATE_MESSAGE = json.dumps({"type": "Terminate"})


@dataclass(frozen=True)
class BeginEvent:
    """Session opened on the server side."""

    session_id: str
    expires_at: int | None = None


@dataclass(frozen=True)
class TurnEvent:
    """A provisional or final transcript for the current turn."""

    text: str
    is_final: bool


@dataclass(frozen=True)
class TerminationEvent:
    """Server acknowledged the end of the session."""

    audio_duration_seconds: float | None = None


ProtocolEvent = BeginEvent | TurnEvent | TerminationEvent


def decode_event(raw: str | bytes, format_turns: bool = False) -> ProtocolEvent | None:
    """Decode one inbound message.

    Args:
        raw: The message payload as received from the socket.
        format_turns: Whether the session asked for formatted turns. When
            set, an unformatted end-of-turn is treated as provisional because
            the formatted final for the same turn follows it.

    Returns:
        The decoded event, or ``None`` for message types this client does
        not understand.

    Raises:
        TransportError: If the payload is not a JSON object or a known
            event is missing its required fields.
    """
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise TransportError(f"Malformed streaming message: {exc}") from exc

    if not isinstance(payload, dict):
        raise TransportError(f"Streaming message is not an object: {type(payload).__name__}")

    event_type = payload.get("type")

    try:
        if event_type == "Begin":
            return BeginEvent(session_id=str(payload["id"]), expires_at=payload.get("expires_at"))

        if event_type == "Turn":
            text = payload["transcript"]
            if not isinstance(text, str):
                raise TypeError("transcript must be a string")
            end_of_turn = bool(payload.get("end_of_turn", False))
            if format_turns and payload.get("turn_is_formatted") is False:
                end_of_turn = False
            return TurnEvent(text=text, is_final=end_of_turn)

        if event_type == "Termination":
            return TerminationEvent(
                audio_duration_seconds=payload.get("audio_duration_seconds"),
            )
    except (KeyError, TypeError) as exc:
        raise TransportError(f"Malformed {event_type} message: {exc}") from exc

    logger.debug("Ignoring unrecognized streaming message type: %r", event_type)
    return None
