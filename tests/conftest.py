"""Shared pytest fixtures for the meeting recorder test suite.

Provides an in-memory database, a lifecycle wired to it, a mock LLM
provider and test doubles for the streaming transport and capture device.
"""

import asyncio
from unittest.mock import AsyncMock

import numpy as np
import pytest

from meeting_recorder.core.exceptions import SendError
from meeting_recorder.services.streaming.protocol import TerminationEvent

# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test."""
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool

    from meeting_recorder.services.storage.database import init_db

    # StaticPool: every session shares the one in-memory database
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Yield an AsyncSession bound to the test engine; rolls back after test."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def repository(db_session):
    """Return a RecordingRepository bound to the test session."""
    from meeting_recorder.services.storage.repository import RecordingRepository

    return RecordingRepository(db_session)


@pytest.fixture
def use_test_db(db_engine):
    """Route ``get_session()`` to the in-memory engine for the test."""
    from meeting_recorder.services.storage import database

    database._engine = db_engine
    database._session_factory = None
    yield db_engine
    database.reset_engine()


@pytest.fixture
def lifecycle(use_test_db):
    """A RecordingLifecycle without a finish listener."""
    from meeting_recorder.services.lifecycle import RecordingLifecycle

    return RecordingLifecycle()


# ---------------------------------------------------------------------------
# LLM Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm():
    """Create a mock LLM provider implementing the BaseLLM interface."""
    from meeting_recorder.services.llm.base import BaseLLM

    llm = AsyncMock(spec=BaseLLM)
    llm.name = "mock"
    llm.summarize.return_value = "## Topics\n- Roadmap\n## Action items\n- Ship it"
    return llm


# ---------------------------------------------------------------------------
# Streaming / capture doubles
# ---------------------------------------------------------------------------


class FakeTransport:
    """In-process stand-in for ``StreamTransport``.

    Inbound events are fed with ``push()``; ``None`` marks a clean close and
    an exception instance is raised from ``receive()``.
    """

    def __init__(self, open_error: Exception | None = None, ack_termination: bool = True):
        self.open_error = open_error
        self.ack_termination = ack_termination
        self.inbound: asyncio.Queue = asyncio.Queue()
        self.sent: list = []
        self.credential = None
        self.config = None
        self.is_open = False
        self.terminated = False
        self.close_calls = 0
        self.frames_sent = 0

    def push(self, item) -> None:
        self.inbound.put_nowait(item)

    async def open(self, credential, config=None):
        if self.open_error is not None:
            raise self.open_error
        self.credential = credential
        self.config = config
        self.is_open = True

    def send(self, frame) -> None:
        if not self.is_open:
            raise SendError("not_open")
        if self.terminated:
            raise SendError("terminating")
        self.sent.append(frame)
        self.frames_sent += 1

    def terminate(self) -> None:
        self.terminated = True
        if self.ack_termination:
            self.push(TerminationEvent(audio_duration_seconds=1.0))
            self.push(None)

    async def receive(self):
        item = await self.inbound.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.close_calls += 1
        self.is_open = False
        self.push(None)


class FakeCapture:
    """Capture device double; ``feed()`` plays the PortAudio callback."""

    def __init__(self, on_samples, start_error: Exception | None = None):
        self.on_samples = on_samples
        self.start_error = start_error
        self.started = False
        self.close_calls = 0

    def start(self) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    def feed(self, num_samples: int, value: float = 0.5) -> None:
        self.on_samples(np.full(num_samples, value, dtype=np.float32))

    def close(self) -> None:
        self.close_calls += 1
        self.started = False


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def token_provider():
    """Mock StreamingTokenProvider returning a fixed token."""
    provider = AsyncMock()
    provider.get_token.return_value = "tmp-token"
    return provider


@pytest.fixture
def capture_factory():
    """Factory for ``FakeCapture``; set ``start_error`` to simulate a busy device."""
    created: list[FakeCapture] = []

    def factory(on_samples):
        capture = FakeCapture(on_samples, start_error=factory.start_error)
        created.append(capture)
        return capture

    factory.start_error = None
    factory.created = created
    return factory


@pytest.fixture
def settings():
    """Settings isolated from the developer's environment and .env file."""
    from meeting_recorder.core.config import Settings

    return Settings(
        _env_file=None,
        assemblyai_api_key="test-key",
        termination_timeout=0.5,
        max_recording_seconds=3600,
    )
