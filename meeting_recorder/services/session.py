"""Interactive recording session.

``RecordingSession`` owns everything that lives only while the microphone
is open: the streaming credential, the capture device, the transport, the
transcript aggregator and the elapsed-time ticker. It moves through
``idle -> connecting -> active -> stopping -> idle`` and, on a normal stop,
hands the recording to ``RecordingLifecycle.finish`` which kicks off the
insight workflow.

Usage::

    session = RecordingSession(lifecycle, StreamingTokenProvider(),
                               on_transcript=print)
    recording_id = await session.start("Weekly sync")
    ...
    await session.stop()
"""

import asyncio
import functools
import logging
import time
from collections.abc import Callable

import numpy as np

from meeting_recorder.core.config import Settings, get_settings
from meeting_recorder.core.exceptions import (
    DeviceError,
    MeetingRecorderError,
    RecordingAlreadyActiveError,
    SendError,
    TransportError,
)
from meeting_recorder.core.models import SessionState, StreamingConfig
from meeting_recorder.services.audio.chunker import AudioFrame, Chunker
from meeting_recorder.services.lifecycle import RecordingLifecycle
from meeting_recorder.services.streaming.aggregator import TranscriptAggregator
from meeting_recorder.services.streaming.protocol import TerminationEvent
from meeting_recorder.services.streaming.token import StreamingTokenProvider
from meeting_recorder.services.streaming.transport import StreamTransport

logger = logging.getLogger(__name__)


def _device(value: str | None) -> str | int | None:
    """sounddevice accepts either a device name or a numeric index."""
    if value is not None and value.isdigit():
        return int(value)
    return value


class RecordingSession:
    """One live capture-and-transcribe session at a time.

    Args:
        lifecycle: Persists the recording and receives the finish handoff.
        token_provider: Exchanges the API key for a streaming credential.
        settings: Application settings (defaults to ``get_settings()``).
        transport_factory: Builds a fresh transport per session.
        capture_factory: Builds the capture device from a samples callback.
        on_transcript: Called with the visible transcript on every update.
        on_tick: Called with elapsed whole seconds about once per second.
        on_error: Called with a message when the session fails.
        clock: Monotonic time source for elapsed/duration.
        tick_interval: Seconds between ``on_tick`` calls.
    """

    def __init__(
        self,
        lifecycle: RecordingLifecycle,
        token_provider: StreamingTokenProvider,
        settings: Settings | None = None,
        transport_factory: Callable[[], StreamTransport] | None = None,
        capture_factory: Callable[[Callable[[np.ndarray], None]], object] | None = None,
        on_transcript: Callable[[str], None] | None = None,
        on_tick: Callable[[int], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
        tick_interval: float = 1.0,
    ) -> None:
        self._settings = settings or get_settings()
        self._lifecycle = lifecycle
        self._token_provider = token_provider
        self._transport_factory = transport_factory or self._default_transport
        self._capture_factory = capture_factory or self._default_capture
        self._on_transcript = on_transcript
        self._on_tick = on_tick
        self._on_error = on_error
        self._clock = clock
        self._tick_interval = tick_interval

        self.state = SessionState.idle
        self.recording_id: int | None = None
        self.aggregator = TranscriptAggregator()
        self.dropped_frames = 0
        self.last_error: str | None = None

        self._chunker = Chunker(self._settings.sample_rate, self._settings.frame_duration_ms)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._transport: StreamTransport | None = None
        self._capture = None
        self._started_at: float | None = None
        self._tick_task: asyncio.Task | None = None
        self._receive_task: asyncio.Task | None = None
        self._stop_task: asyncio.Task | None = None
        self._termination = asyncio.Event()
        self._deferred_stop: asyncio.Future | None = None

        # Coalesced transcript persistence: at most one write in flight,
        # followed by one more if the committed text changed meanwhile.
        self._write_task: asyncio.Task | None = None
        self._write_dirty = False

    # -- factories --------------------------------------------------------

    def _default_transport(self) -> StreamTransport:
        return StreamTransport(self._settings.streaming_ws_url)

    def _default_capture(self, on_samples: Callable[[np.ndarray], None]):
        from meeting_recorder.services.audio.capture import MicrophoneCapture

        return MicrophoneCapture(
            on_samples,
            sample_rate=self._settings.sample_rate,
            device=_device(self._settings.capture_device),
            blocksize=self._settings.capture_blocksize,
        )

    # -- properties -------------------------------------------------------

    @property
    def elapsed(self) -> float:
        """Seconds since the session became active (0 before that)."""
        if self._started_at is None:
            return 0.0
        return max(self._clock() - self._started_at, 0.0)

    @property
    def frames_sent(self) -> int:
        return self._transport.frames_sent if self._transport is not None else 0

    # -- callbacks --------------------------------------------------------

    def _notify(self, callback: Callable | None, value) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            logger.exception("Session callback %r failed", callback)

    def _report_error(self, message: str) -> None:
        self.last_error = message
        self._notify(self._on_error, message)

    # -- start ------------------------------------------------------------

    async def start(self, title: str | None = None) -> int:
        """Connect and begin capturing.

        Returns:
            The ID of the newly created recording.

        Raises:
            RecordingAlreadyActiveError: If the session is not idle.
            CredentialError: If no streaming credential could be obtained.
            DeviceError: If the microphone could not be opened.
            ConnectError: If the streaming handshake failed.
        """
        if self.state is not SessionState.idle:
            raise RecordingAlreadyActiveError()

        self.state = SessionState.connecting
        self._reset()
        self._loop = asyncio.get_running_loop()

        try:
            token = await self._token_provider.get_token()
            self.recording_id = await self._lifecycle.create(title)
            self._transport = self._transport_factory()
            self._capture = self._capture_factory(self._on_samples)
            self._capture.start()
            await self._transport.open(token, self._streaming_config())
        except MeetingRecorderError as exc:
            await self._fail_start(exc.detail)
            raise
        except asyncio.CancelledError:
            await self._fail_start("Recording start was cancelled")
            raise
        except OSError as exc:
            # PortAudio missing or the device vanished mid-open
            error = DeviceError(f"Microphone unavailable: {exc}")
            await self._fail_start(error.detail)
            raise error from exc
        except Exception as exc:
            logger.exception("Unexpected error while starting recording")
            error = MeetingRecorderError(
                detail=f"Recording failed to start: {exc}", code="SESSION_START_FAILED"
            )
            await self._fail_start(error.detail)
            raise error from exc

        self.state = SessionState.active
        self._started_at = self._clock()
        self._tick_task = asyncio.create_task(self._tick_loop(), name="session-tick")
        self._receive_task = asyncio.create_task(self._receive_loop(), name="session-receive")
        logger.info("Recording %s started", self.recording_id)

        if self._deferred_stop is not None:
            logger.info("Running stop requested while connecting")
            try:
                await self.stop()
            finally:
                self._resolve_deferred_stop()
        return self.recording_id

    async def _fail_start(self, message: str) -> None:
        logger.error("Recording session failed to start: %s", message)
        try:
            await self._release()
        finally:
            self.state = SessionState.idle
            self._report_error(message)
            self._resolve_deferred_stop()

    def _reset(self) -> None:
        self.recording_id = None
        self.aggregator = TranscriptAggregator()
        self.dropped_frames = 0
        self.last_error = None
        self._chunker.reset()
        self._started_at = None
        self._termination = asyncio.Event()
        self._write_dirty = False

    def _streaming_config(self) -> StreamingConfig:
        return StreamingConfig(
            sample_rate=self._settings.sample_rate,
            format_turns=self._settings.format_turns,
            speech_model=self._settings.speech_model,
        )

    def _resolve_deferred_stop(self) -> None:
        future, self._deferred_stop = self._deferred_stop, None
        if future is not None and not future.done():
            future.set_result(None)

    # -- audio path -------------------------------------------------------

    def _on_samples(self, samples: np.ndarray) -> None:
        """Capture callback; runs on the audio thread."""
        frames = self._chunker.push(samples)
        loop = self._loop
        if not frames or loop is None:
            return
        for frame in frames:
            try:
                loop.call_soon_threadsafe(self._forward_frame, frame)
            except RuntimeError:
                # Event loop already closed
                return

    def _forward_frame(self, frame: AudioFrame) -> None:
        transport = self._transport
        if transport is None:
            self.dropped_frames += 1
            return
        try:
            transport.send(frame)
        except SendError as exc:
            self.dropped_frames += 1
            if self.dropped_frames == 1:
                logger.debug("Dropping audio frames (%s)", exc.reason)

    # -- background tasks -------------------------------------------------

    async def _tick_loop(self) -> None:
        limit = self._settings.max_recording_seconds
        while True:
            await asyncio.sleep(self._tick_interval)
            elapsed = self.elapsed
            self._notify(self._on_tick, int(elapsed))
            if elapsed >= limit:
                logger.info("Recording %s reached the %ss limit", self.recording_id, limit)
                self._begin_teardown(self._stop)
                return

    async def _receive_loop(self) -> None:
        transport = self._transport
        try:
            while True:
                event = await transport.receive()
                if event is None:
                    break
                if isinstance(event, TerminationEvent):
                    self._termination.set()
                update = self.aggregator.apply(event)
                if update is None:
                    continue
                self._notify(self._on_transcript, update.visible)
                if update.committed_changed:
                    self._persist_committed()
        except TransportError as exc:
            if self.state is SessionState.stopping:
                logger.warning("Transport error while stopping: %s", exc.detail)
            else:
                self._begin_teardown(functools.partial(self._abort, exc.detail))
        finally:
            self._termination.set()

    def _persist_committed(self) -> None:
        if self._write_task is not None and not self._write_task.done():
            self._write_dirty = True
            return
        self._write_task = asyncio.create_task(self._write_transcript())

    async def _write_transcript(self) -> None:
        while True:
            self._write_dirty = False
            try:
                await self._lifecycle.save_transcript(self.recording_id, self.aggregator.committed)
            except Exception:
                logger.exception("Failed to save transcript for recording %s", self.recording_id)
            if not self._write_dirty:
                return

    async def _await_writes(self) -> None:
        task = self._write_task
        if task is not None:
            await task
        self._write_task = None

    # -- stop / teardown --------------------------------------------------

    async def stop(self) -> None:
        """Stop capturing and hand the recording off for post-processing.

        A no-op when idle. While connecting, the stop is deferred until the
        connection attempt resolves; while a stop (or an abort) is already
        running, this waits for it to complete.
        """
        if self.state is SessionState.idle:
            logger.debug("Stop ignored (state=%s)", self.state)
            return
        if self.state is SessionState.connecting:
            if self._deferred_stop is None:
                self._deferred_stop = asyncio.get_running_loop().create_future()
            await asyncio.shield(self._deferred_stop)
            return
        await asyncio.shield(self._begin_teardown(self._stop))

    def _begin_teardown(self, teardown: Callable) -> asyncio.Task:
        """Start ``teardown`` unless one is already running; return the running one."""
        task = self._stop_task
        if task is None or task.done():
            self.state = SessionState.stopping
            self._cancel_tick()
            task = asyncio.create_task(teardown(), name="session-teardown")
            task.add_done_callback(self._teardown_done)
            self._stop_task = task
        return task

    def _teardown_done(self, task: asyncio.Task) -> None:
        if self._stop_task is task:
            self._stop_task = None
        if not task.cancelled() and task.exception() is not None:
            logger.error("Session teardown failed: %r", task.exception())

    async def _stop(self) -> None:
        recording_id = self.recording_id
        duration = int(self.elapsed)
        try:
            try:
                # Stop the device first so the chunker tail is really the
                # tail, and let frames already handed to the loop go out.
                self._close_capture()
                await asyncio.sleep(0)
                tail = self._chunker.flush()
                if tail is not None:
                    self._forward_frame(tail)

                self._transport.terminate()
                try:
                    await asyncio.wait_for(
                        self._termination.wait(), self._settings.termination_timeout
                    )
                except TimeoutError:
                    logger.warning(
                        "No termination acknowledgement within %.1fs",
                        self._settings.termination_timeout,
                    )
            finally:
                await self._release()
                await self._await_writes()

            await self._lifecycle.finish(recording_id, duration, self.aggregator.committed)
        except MeetingRecorderError as exc:
            logger.error("Finish handoff for recording %s failed: %s", recording_id, exc.detail)
            self._report_error(exc.detail)
        finally:
            self.state = SessionState.idle
        logger.info(
            "Recording %s stopped after %ss (%s frames sent, %s dropped)",
            recording_id,
            duration,
            self.frames_sent,
            self.dropped_frames,
        )

    async def _abort(self, message: str) -> None:
        """Tear down after a mid-session failure without finishing."""
        logger.error("Recording %s aborted: %s", self.recording_id, message)
        self._report_error(message)
        try:
            await self._release()
            await self._await_writes()
        finally:
            self.state = SessionState.idle

    def _cancel_tick(self) -> None:
        task, self._tick_task = self._tick_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def _close_capture(self) -> None:
        capture, self._capture = self._capture, None
        if capture is None:
            return
        try:
            capture.close()
        except Exception:
            logger.exception("Failed to release capture device")

    async def _release(self) -> None:
        """Release the device and transport; safe on every exit path."""
        self._close_capture()

        if self._transport is not None:
            await self._transport.close()

        task, self._receive_task = self._receive_task, None
        if task is not None and task is not asyncio.current_task():
            try:
                await asyncio.wait_for(task, timeout=self._settings.termination_timeout)
            except TimeoutError:
                logger.warning("Receive task did not finish; cancelled")
            except Exception:
                logger.exception("Receive task failed")
