"""Tests for the command-line entry point."""

import pytest

from meeting_recorder.__main__ import build_parser, list_recordings, show_recording
from meeting_recorder.services.lifecycle import RecordingLifecycle


class TestParser:
    def test_record_with_title(self):
        args = build_parser().parse_args(["record", "--title", "Retro"])
        assert args.command == "record"
        assert args.title == "Retro"

    def test_show_requires_id(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["show"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestCommands:
    async def test_list_empty(self, use_test_db, capsys):
        assert await list_recordings(limit=5) == 0
        assert "No recordings yet." in capsys.readouterr().out

    async def test_show(self, use_test_db, capsys):
        rid = await RecordingLifecycle().create("Retro")

        assert await show_recording(rid) == 0

        out = capsys.readouterr().out
        assert f"Recording #{rid}: Retro" in out
        assert "(empty)" in out

    async def test_show_missing(self, use_test_db, capsys):
        assert await show_recording(404) == 1
        assert "Recording not found: 404" in capsys.readouterr().err
