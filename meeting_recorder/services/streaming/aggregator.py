"""Partial/final turn reconciliation for the live transcript."""

import logging
from dataclasses import dataclass

from meeting_recorder.services.streaming.protocol import (
    BeginEvent,
    ProtocolEvent,
    TerminationEvent,
    TurnEvent,
)

logger = logging.getLogger(__name__)


def _join(left: str, right: str) -> str:
    """Word-join two transcript pieces with a single space."""
    if not left:
        return right
    if not right:
        return left
    return f"{left} {right}"


@dataclass(frozen=True)
class TranscriptUpdate:
    """Result of applying one event to the aggregator."""

    visible: str
    committed: str
    committed_changed: bool


class TranscriptAggregator:
    """Maintains the committed transcript and the currently visible one.

    ``committed`` is built from final turns only and never shrinks.
    ``pending`` holds the latest provisional text of the turn in progress
    and is discarded once its final counterpart arrives.
    """

    def __init__(self) -> None:
        self.committed = ""
        self.pending = ""

    @property
    def visible(self) -> str:
        return _join(self.committed, self.pending)

    def apply(self, event: ProtocolEvent) -> TranscriptUpdate | None:
        """Fold *event* into the transcript.

        Returns:
            The new transcript state for ``Turn`` events, ``None`` for
            lifecycle markers.
        """
        match event:
            case TurnEvent(text=text, is_final=False):
                self.pending = text
                return TranscriptUpdate(self.visible, self.committed, committed_changed=False)

            case TurnEvent(text=text, is_final=True):
                before = self.committed
                self.committed = _join(self.committed, text)
                self.pending = ""
                return TranscriptUpdate(
                    self.visible,
                    self.committed,
                    committed_changed=self.committed != before,
                )

            case BeginEvent(session_id=session_id):
                logger.debug("Transcript stream begin (session=%s)", session_id)
            case TerminationEvent():
                logger.debug("Transcript stream termination")
        return None
