"""
Streaming module - real-time transcription client.

Wire codec, WebSocket transport, transcript aggregation, and the
credential exchange that authorizes a session.
"""

from .aggregator import TranscriptAggregator, TranscriptUpdate
from .protocol import BeginEvent, ProtocolEvent, TerminationEvent, TurnEvent, decode_event
from .token import StreamingTokenProvider
from .transport import StreamTransport, TransportState

__all__ = [
    "BeginEvent",
    "ProtocolEvent",
    "StreamTransport",
    "StreamingTokenProvider",
    "TerminationEvent",
    "TranscriptAggregator",
    "TranscriptUpdate",
    "TransportState",
    "TurnEvent",
    "decode_event",
]
