"""
Streaming credential endpoint.

Lets a client that captures audio itself obtain a temporary token for the
streaming WebSocket without ever seeing the long-lived API key.
"""

from fastapi import APIRouter, Depends

from meeting_recorder.core.models import StreamingTokenResponse
from meeting_recorder.services.streaming.token import StreamingTokenProvider

router = APIRouter(prefix="/streaming", tags=["streaming"])


def get_token_provider() -> StreamingTokenProvider:
    return StreamingTokenProvider()


@router.post("/token", response_model=StreamingTokenResponse)
async def create_streaming_token(
    provider: StreamingTokenProvider = Depends(get_token_provider),
):
    """Issue a short-lived streaming token."""
    token = await provider.get_token()
    return StreamingTokenResponse(token=token, expires_in=provider.expires_in)
