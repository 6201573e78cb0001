"""Integration test fixtures.

Provides an async HTTP client over the real FastAPI application, backed by
the in-memory SQLite engine, with the insight workflow running against a
mock LLM.
"""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from tenacity import wait_none

from meeting_recorder.api.app import create_app
from meeting_recorder.api.routes.streaming import get_token_provider
from meeting_recorder.services.insights import InsightGenerator
from meeting_recorder.services.lifecycle import RecordingLifecycle
from meeting_recorder.services.streaming.token import StreamingTokenProvider
from meeting_recorder.services.workflow import InsightWorkflow, WorkflowRunner


@pytest.fixture
def runner(mock_llm, use_test_db):
    """Workflow runner whose retries do not sleep."""
    workflow = InsightWorkflow(
        InsightGenerator(mock_llm),
        RecordingLifecycle(),
        max_attempts=2,
        wait=wait_none(),
    )
    return WorkflowRunner(workflow)


@pytest.fixture
def token_handler():
    """Replaceable handler for the upstream token endpoint."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"token": "tmp-from-upstream"})

    return handler


@pytest.fixture
def app(runner, token_handler):
    """A fresh application wired to the test runner and token endpoint."""
    application = create_app()
    application.state.runner = runner
    application.state.lifecycle = RecordingLifecycle(on_finished=runner.submit)
    application.dependency_overrides[get_token_provider] = lambda: StreamingTokenProvider(
        api_key="test-key",
        token_url="https://api.example.test/v3/streaming/token",
        expires_in=3600,
        transport=httpx.MockTransport(token_handler),
    )
    return application


@pytest.fixture
async def async_client(app):
    """AsyncClient talking to the app in-process (lifespan not started)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
