"""
Command-line entry point.

Usage::

    python -m meeting_recorder record --title "Weekly sync"
    python -m meeting_recorder list
    python -m meeting_recorder show 3
    python -m meeting_recorder serve --port 8000
"""

import argparse
import asyncio
import logging
import shutil
import signal
import sys

from meeting_recorder.core.config import Settings, get_settings
from meeting_recorder.core.exceptions import MeetingRecorderError
from meeting_recorder.core.models import RecordingStatus, SessionState
from meeting_recorder.core.utils import format_duration
from meeting_recorder.services.lifecycle import RecordingLifecycle
from meeting_recorder.services.session import RecordingSession
from meeting_recorder.services.storage import close_db, init_db
from meeting_recorder.services.streaming.token import StreamingTokenProvider
from meeting_recorder.services.workflow import create_runner

logger = logging.getLogger("meeting_recorder")

POLL_INTERVAL = 0.5


class LiveDisplay:
    """Single status line: elapsed time followed by the transcript tail."""

    def __init__(self, stream=sys.stdout) -> None:
        self._stream = stream
        self._elapsed = 0
        self._text = ""

    def on_transcript(self, text: str) -> None:
        self._text = text
        self._render()

    def on_tick(self, elapsed: int) -> None:
        self._elapsed = elapsed
        self._render()

    def on_error(self, message: str) -> None:
        self._stream.write(f"\nError: {message}\n")
        self._stream.flush()

    def _render(self) -> None:
        prefix = f"[{format_duration(self._elapsed)}] "
        width = shutil.get_terminal_size().columns - len(prefix) - 1
        tail = self._text[-width:] if width > 0 else ""
        self._stream.write(f"\r{prefix}{tail}".ljust(width + len(prefix)))
        self._stream.flush()

    def finish(self) -> None:
        self._stream.write("\n")
        self._stream.flush()


def _print_recording(recording) -> None:
    print(f"Recording #{recording.id}: {recording.title}")
    print(f"  Status:   {recording.status}")
    print(f"  Duration: {format_duration(recording.duration)}")
    print(f"  Created:  {recording.created_at:%Y-%m-%d %H:%M:%S}")
    if recording.error_message:
        print(f"  Error:    {recording.error_message}")
    print("\nTranscript:\n")
    print(recording.transcription or "(empty)")
    if recording.insights:
        print("\nInsights:\n")
        print(recording.insights)


async def record(settings: Settings, title: str | None) -> int:
    """Capture until Ctrl+C (or the time limit), then wait for insights."""
    await init_db()
    runner = create_runner(settings)
    lifecycle = RecordingLifecycle(on_finished=runner.submit)
    display = LiveDisplay()
    session = RecordingSession(
        lifecycle,
        StreamingTokenProvider(),
        settings=settings,
        on_transcript=display.on_transcript,
        on_tick=display.on_tick,
        on_error=display.on_error,
    )

    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    handles_sigint = True
    try:
        loop.add_signal_handler(signal.SIGINT, stop_requested.set)
    except NotImplementedError:
        handles_sigint = False
        logger.debug("Signal handlers unavailable; Ctrl+C will interrupt directly")

    try:
        try:
            recording_id = await session.start(title)
        except MeetingRecorderError as exc:
            print(f"Could not start recording: {exc.detail}", file=sys.stderr)
            return 1

        print(f"Recording #{recording_id} - press Ctrl+C to stop")
        # Also returns when the session stops itself (time limit, connection loss)
        while session.state is SessionState.active and not stop_requested.is_set():
            try:
                await asyncio.wait_for(stop_requested.wait(), POLL_INTERVAL)
            except TimeoutError:
                pass

        await session.stop()
        display.finish()

        if session.last_error:
            print(f"Recording ended with an error: {session.last_error}", file=sys.stderr)
        print("Generating insights...")
        await runner.drain()

        recording = await lifecycle.get(recording_id)
        _print_recording(recording)
        return 0 if recording.status == RecordingStatus.completed else 1
    finally:
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)
        await close_db()


async def list_recordings(limit: int) -> int:
    await init_db()
    try:
        recordings = await RecordingLifecycle().list_recent(limit=limit)
    finally:
        await close_db()

    if not recordings:
        print("No recordings yet.")
        return 0
    for r in recordings:
        print(
            f"{r.id:>5}  {r.created_at:%Y-%m-%d %H:%M}  "
            f"{format_duration(r.duration):>8}  {r.status:<10}  {r.title}"
        )
    return 0


async def show_recording(recording_id: int) -> int:
    await init_db()
    try:
        recording = await RecordingLifecycle().get(recording_id)
    except MeetingRecorderError as exc:
        print(exc.detail, file=sys.stderr)
        return 1
    finally:
        await close_db()
    _print_recording(recording)
    return 0


def serve(settings: Settings, host: str | None, port: int | None) -> int:
    import uvicorn

    uvicorn.run(
        "meeting_recorder.api.app:app",
        host=host or settings.app_host,
        port=port or settings.app_port,
        log_level=settings.log_level.lower(),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meeting_recorder",
        description="Live meeting transcription with post-recording insights",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    record_parser = sub.add_parser("record", help="Record from the microphone")
    record_parser.add_argument("--title", type=str, default=None, help="Recording title")

    list_parser = sub.add_parser("list", help="List recent recordings")
    list_parser.add_argument("--limit", type=int, default=20, help="Rows to show (default: 20)")

    show_parser = sub.add_parser("show", help="Show one recording")
    show_parser.add_argument("recording_id", type=int)

    serve_parser = sub.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", type=str, default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point with CLI argument parsing."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "record":
        return asyncio.run(record(settings, args.title))
    if args.command == "list":
        return asyncio.run(list_recordings(args.limit))
    if args.command == "show":
        return asyncio.run(show_recording(args.recording_id))
    return serve(settings, args.host, args.port)


if __name__ == "__main__":
    sys.exit(main())
