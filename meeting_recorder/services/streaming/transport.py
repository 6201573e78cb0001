"""Duplex WebSocket transport to the streaming transcription service.

One ``StreamTransport`` owns exactly one connection. Connection parameters
travel in the query string at connect time and cannot change mid-session.
Outbound audio goes through a queue drained by a single writer task, so
``send()`` never blocks the producer and frames leave in produce order.
``receive()`` is the only suspension point for the consumer.
"""

import asyncio
import logging
from enum import StrEnum
from urllib.parse import urlencode

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedOK,
    InvalidHandshake,
    InvalidStatus,
    InvalidURI,
)

from meeting_recorder.core.exceptions import (
    ConnectError,
    ConnectFailure,
    SendError,
    TransportError,
)
from meeting_recorder.core.models import StreamingConfig
from meeting_recorder.services.audio.chunker import AudioFrame
from meeting_recorder.services.streaming.protocol import (
    TERMINATE_MESSAGE,
    BeginEvent,
    ProtocolEvent,
    TerminationEvent,
    decode_event,
)

logger = logging.getLogger(__name__)

_UNAUTHORIZED_STATUSES = {401, 403}


class TransportState(StrEnum):
    """Connection lifecycle of a ``StreamTransport``."""

    idle = "idle"
    connecting = "connecting"
    open = "open"
    closing = "closing"
    closed = "closed"


class StreamTransport:
    """Client side of one streaming transcription session.

    Args:
        url: Base WebSocket URL of the streaming endpoint.
        open_timeout: Seconds allowed for the opening handshake.
        drain_timeout: Seconds ``close()`` waits for queued messages to flush.
    """

    def __init__(
        self,
        url: str,
        open_timeout: float = 10.0,
        drain_timeout: float = 1.0,
    ) -> None:
        self._url = url
        self._open_timeout = open_timeout
        self._drain_timeout = drain_timeout
        self._config = StreamingConfig()
        self._ws: ClientConnection | None = None
        self._outbound: asyncio.Queue[bytes | str | None] = asyncio.Queue()
        self._writer: asyncio.Task | None = None
        self._close_task: asyncio.Task | None = None
        self._terminated = False
        self.state = TransportState.idle
        self.session_id: str | None = None
        self.frames_sent = 0

    @property
    def is_open(self) -> bool:
        return self.state is TransportState.open and not self._terminated

    def _build_url(self, credential: str) -> str:
        params = {**self._config.query_params(), "token": credential}
        return f"{self._url}?{urlencode(params)}"

    async def open(self, credential: str, config: StreamingConfig | None = None) -> None:
        """Perform the opening handshake.

        Raises:
            ConnectError: If the handshake does not complete.
            TransportError: If this transport was already used.
        """
        if self.state is not TransportState.idle:
            raise TransportError(f"Transport cannot be reopened (state={self.state})")

        self._config = config or StreamingConfig()
        self.state = TransportState.connecting
        logger.info(
            "Connecting to streaming service %s (rate=%s, model=%s)",
            self._url,
            self._config.sample_rate,
            self._config.speech_model,
        )

        try:
            self._ws = await connect(self._build_url(credential), open_timeout=self._open_timeout)
        except InvalidStatus as exc:
            self.state = TransportState.closed
            status = exc.response.status_code
            reason = (
                ConnectFailure.unauthorized
                if status in _UNAUTHORIZED_STATUSES
                else ConnectFailure.rejected
            )
            raise ConnectError(reason, f"HTTP {status}") from exc
        except (InvalidURI, InvalidHandshake) as exc:
            self.state = TransportState.closed
            raise ConnectError(ConnectFailure.rejected, str(exc)) from exc
        except (OSError, TimeoutError) as exc:
            self.state = TransportState.closed
            raise ConnectError(ConnectFailure.unreachable, str(exc)) from exc

        self.state = TransportState.open
        self._writer = asyncio.create_task(self._write_loop())
        logger.info("Streaming connection open")

    def send(self, frame: AudioFrame) -> None:
        """Queue one audio frame as a binary message (never blocks).

        Raises:
            SendError: If the transport is not open or already terminating.
        """
        if self.state is not TransportState.open:
            raise SendError("not_open")
        if self._terminated:
            raise SendError("terminating")
        self._outbound.put_nowait(frame.pcm)

    def terminate(self) -> None:
        """Ask the service to end the session after the queued audio.

        Does not wait for the acknowledgement; the service answers with a
        ``Termination`` event and then closes the socket.
        """
        if self.state is not TransportState.open or self._terminated:
            logger.debug("Terminate skipped (state=%s)", self.state)
            return
        self._terminated = True
        self._outbound.put_nowait(TERMINATE_MESSAGE)
        logger.info("Session termination requested")

    async def _write_loop(self) -> None:
        """Drain the outbound queue onto the socket until the sentinel arrives."""
        ws = self._ws
        while True:
            message = await self._outbound.get()
            if message is None or ws is None:
                return
            try:
                await ws.send(message)
            except ConnectionClosed:
                logger.debug("Socket closed while sending; writer exiting")
                return
            if isinstance(message, bytes):
                self.frames_sent += 1

    async def receive(self) -> ProtocolEvent | None:
        """Wait for the next protocol event.

        Returns:
            The next decoded event, or ``None`` once the connection has
            closed cleanly (locally or by the service).

        Raises:
            TransportError: On an abnormal close or a malformed payload.
        """
        ws = self._ws
        if ws is None:
            return None

        while True:
            try:
                raw = await ws.recv()
            except ConnectionClosedOK:
                logger.info("Streaming connection closed")
                return None
            except ConnectionClosed as exc:
                close = exc.rcvd
                detail = f"code={close.code} reason={close.reason!r}" if close else "no close frame"
                raise TransportError(f"Streaming connection lost ({detail})") from exc

            event = decode_event(raw, format_turns=self._config.format_turns)
            if event is None:
                continue
            if isinstance(event, BeginEvent):
                self.session_id = event.session_id
                logger.info("Streaming session began: %s", event.session_id)
            elif isinstance(event, TerminationEvent):
                logger.info(
                    "Streaming session terminated (audio=%ss)",
                    event.audio_duration_seconds,
                )
            return event

    async def close(self) -> None:
        """Release the socket and writer task. Idempotent."""
        if self.state in (TransportState.idle, TransportState.connecting):
            self.state = TransportState.closed
            return
        if self._close_task is None:
            self._close_task = asyncio.ensure_future(self._close())
        await asyncio.shield(self._close_task)

    async def _close(self) -> None:
        self.state = TransportState.closing
        writer, self._writer = self._writer, None
        if writer is not None:
            self._outbound.put_nowait(None)
            try:
                await asyncio.wait_for(writer, timeout=self._drain_timeout)
            except TimeoutError:
                logger.warning("Outbound queue did not drain within %.1fs", self._drain_timeout)
            except Exception:
                logger.exception("Streaming writer failed")

        ws = self._ws
        if ws is not None:
            await ws.close()
        self._ws = None
        self.state = TransportState.closed
        logger.info("Streaming transport closed (%s frames sent)", self.frames_sent)
