"""Short-lived streaming credentials.

Exchanges the long-lived AssemblyAI key (which never leaves the server
side) for a temporary token that authorizes one streaming WebSocket.
"""

import logging

import httpx

from meeting_recorder.core.config import get_settings
from meeting_recorder.core.exceptions import CredentialError

logger = logging.getLogger(__name__)


class StreamingTokenProvider:
    """Issues temporary streaming tokens via the AssemblyAI token endpoint.

    Args:
        api_key: AssemblyAI key (falls back to settings if not provided).
        token_url: Token endpoint URL.
        expires_in: Requested token lifetime in seconds.
        transport: Optional httpx transport override (used in tests).
    """

    def __init__(
        self,
        api_key: str | None = None,
        token_url: str | None = None,
        expires_in: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.assemblyai_api_key
        self._token_url = token_url or settings.streaming_token_url
        self.expires_in = expires_in or settings.streaming_token_expires_in
        self._transport = transport
        self._timeout = timeout

    async def get_token(self) -> str:
        """Return a fresh streaming token.

        Raises:
            CredentialError: If no key is configured or the service refuses.
        """
        if not self._api_key:
            raise CredentialError("AssemblyAI API key not configured")

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self._timeout
            ) as client:
                response = await client.post(
                    self._token_url,
                    headers={"Authorization": self._api_key},
                    json={"expires_in": self.expires_in},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("Token request rejected: HTTP %s", exc.response.status_code)
            raise CredentialError(
                f"Failed to get streaming token: HTTP {exc.response.status_code} "
                f"{exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Token request failed: %s", exc)
            raise CredentialError(f"Failed to get streaming token: {exc}") from exc
        except ValueError as exc:
            raise CredentialError("Token endpoint returned invalid JSON") from exc

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise CredentialError("Token endpoint response did not include a token")
        logger.debug("Issued streaming token (expires_in=%ss)", self.expires_in)
        return token
