"""Tests for the streaming wire codec."""

import json

import pytest

from meeting_recorder.core.exceptions import TransportError
from meeting_recorder.services.streaming.protocol import (
    TERMINATE_MESSAGE,
    BeginEvent,
    TerminationEvent,
    TurnEvent,
    decode_event,
)


def _msg(**payload) -> str:
    return json.dumps(payload)


class TestDecodeEvent:
    def test_begin(self):
        event = decode_event(_msg(type="Begin", id="abc", expires_at=1700000000))
        assert event == BeginEvent(session_id="abc", expires_at=1700000000)

    def test_partial_turn(self):
        event = decode_event(_msg(type="Turn", transcript="hello", end_of_turn=False))
        assert event == TurnEvent(text="hello", is_final=False)

    def test_final_turn(self):
        event = decode_event(_msg(type="Turn", transcript="hello world", end_of_turn=True))
        assert event == TurnEvent(text="hello world", is_final=True)

    def test_termination(self):
        event = decode_event(_msg(type="Termination", audio_duration_seconds=12.5))
        assert event == TerminationEvent(audio_duration_seconds=12.5)

    def test_accepts_bytes(self):
        raw = _msg(type="Begin", id="x").encode()
        assert decode_event(raw) == BeginEvent(session_id="x")

    def test_unknown_type_is_skipped(self):
        assert decode_event(_msg(type="SpeechStarted", timestamp=10)) is None

    def test_missing_type_is_skipped(self):
        assert decode_event(_msg(transcript="x")) is None


class TestFormattedTurns:
    """With formatted turns only the formatted end-of-turn is final."""

    def test_unformatted_end_of_turn_is_provisional(self):
        raw = _msg(type="Turn", transcript="hi there", end_of_turn=True, turn_is_formatted=False)
        assert decode_event(raw, format_turns=True) == TurnEvent("hi there", is_final=False)

    def test_formatted_end_of_turn_is_final(self):
        raw = _msg(type="Turn", transcript="Hi there.", end_of_turn=True, turn_is_formatted=True)
        assert decode_event(raw, format_turns=True) == TurnEvent("Hi there.", is_final=True)

    def test_flag_ignored_without_formatting(self):
        raw = _msg(type="Turn", transcript="hi there", end_of_turn=True, turn_is_formatted=False)
        assert decode_event(raw, format_turns=False).is_final is True


class TestMalformed:
    def test_invalid_json(self):
        with pytest.raises(TransportError):
            decode_event("{not json")

    def test_non_object_payload(self):
        with pytest.raises(TransportError):
            decode_event("[1, 2, 3]")

    def test_begin_without_id(self):
        with pytest.raises(TransportError):
            decode_event(_msg(type="Begin"))

    def test_turn_without_transcript(self):
        with pytest.raises(TransportError):
            decode_event(_msg(type="Turn", end_of_turn=True))

    def test_turn_with_non_string_transcript(self):
        with pytest.raises(TransportError):
            decode_event(_msg(type="Turn", transcript=42))


def test_terminate_message():
    assert json.loads(TERMINATE_MESSAGE) == {"type": "Terminate"}
