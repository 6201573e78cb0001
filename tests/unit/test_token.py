"""Tests for the streaming token exchange."""

import json

import httpx
import pytest

from meeting_recorder.core.exceptions import CredentialError
from meeting_recorder.services.streaming.token import StreamingTokenProvider

TOKEN_URL = "https://api.example.test/v3/streaming/token"


def _provider(handler, api_key="secret-key") -> StreamingTokenProvider:
    return StreamingTokenProvider(
        api_key=api_key,
        token_url=TOKEN_URL,
        expires_in=600,
        transport=httpx.MockTransport(handler),
    )


class TestGetToken:
    async def test_returns_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"token": "tmp-abc"})

        token = await _provider(handler).get_token()

        assert token == "tmp-abc"
        assert seen == {
            "method": "POST",
            "url": TOKEN_URL,
            "auth": "secret-key",
            "body": {"expires_in": 600},
        }

    async def test_missing_key_raises_without_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(CredentialError, match="not configured"):
            await _provider(handler, api_key="").get_token()

    async def test_rejected_key(self):
        def handler(request):
            return httpx.Response(401, json={"error": "Invalid API key"})

        with pytest.raises(CredentialError, match="401"):
            await _provider(handler).get_token()

    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(CredentialError):
            await _provider(handler).get_token()

    async def test_response_without_token(self):
        def handler(request):
            return httpx.Response(200, json={"expires_in": 600})

        with pytest.raises(CredentialError, match="did not include a token"):
            await _provider(handler).get_token()

    async def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>")

        with pytest.raises(CredentialError, match="invalid JSON"):
            await _provider(handler).get_token()
