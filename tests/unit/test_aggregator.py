"""Tests for partial/final transcript reconciliation."""

from meeting_recorder.services.streaming.aggregator import TranscriptAggregator
from meeting_recorder.services.streaming.protocol import (
    BeginEvent,
    TerminationEvent,
    TurnEvent,
)


class TestTurns:
    def test_partial_then_final(self):
        """Begin, a provisional turn, then its final version."""
        agg = TranscriptAggregator()

        assert agg.apply(BeginEvent(session_id="s1")) is None

        update = agg.apply(TurnEvent("hello", is_final=False))
        assert update.visible == "hello"
        assert update.committed == ""
        assert update.committed_changed is False

        update = agg.apply(TurnEvent("hello world", is_final=True))
        assert update.visible == "hello world"
        assert update.committed == "hello world"
        assert update.committed_changed is True
        assert agg.pending == ""

    def test_consecutive_finals_are_space_joined(self):
        agg = TranscriptAggregator()
        agg.apply(TurnEvent("hello", is_final=True))
        agg.apply(TurnEvent("there", is_final=True))
        assert agg.committed == "hello there"

    def test_partial_shown_after_committed(self):
        agg = TranscriptAggregator()
        agg.apply(TurnEvent("first turn.", is_final=True))
        update = agg.apply(TurnEvent("second", is_final=False))
        assert update.visible == "first turn. second"
        assert update.committed == "first turn."

    def test_newer_partial_replaces_older(self):
        agg = TranscriptAggregator()
        agg.apply(TurnEvent("wha", is_final=False))
        agg.apply(TurnEvent("what is", is_final=False))
        assert agg.visible == "what is"

    def test_empty_final_leaves_committed_unchanged(self):
        agg = TranscriptAggregator()
        agg.apply(TurnEvent("hello", is_final=True))
        agg.apply(TurnEvent("um", is_final=False))

        update = agg.apply(TurnEvent("", is_final=True))

        assert update.committed == "hello"
        assert update.committed_changed is False
        assert update.visible == "hello"

    def test_committed_never_shrinks(self):
        agg = TranscriptAggregator()
        events = [
            TurnEvent("a", False),
            TurnEvent("a b", True),
            TurnEvent("", False),
            TurnEvent("c", False),
            TurnEvent("c d", True),
            TurnEvent("", True),
        ]
        previous = ""
        for event in events:
            agg.apply(event)
            assert agg.committed.startswith(previous)
            previous = agg.committed
        assert agg.committed == "a b c d"


class TestLifecycleMarkers:
    def test_termination_has_no_transcript_effect(self):
        agg = TranscriptAggregator()
        agg.apply(TurnEvent("done", is_final=True))
        agg.apply(TurnEvent("trailing", is_final=False))

        assert agg.apply(TerminationEvent(audio_duration_seconds=3.0)) is None
        assert agg.committed == "done"
        assert agg.visible == "done trailing"
