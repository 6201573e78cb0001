"""
AssemblyAI LeMUR provider implementation.

Calls the LeMUR task endpoint over HTTP with the same AssemblyAI key used
for streaming, passing the transcript as ``input_text`` so no stored
transcript ID is needed.
"""

import logging

import httpx

from meeting_recorder.core.config import get_settings
from meeting_recorder.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)


class LemurLLM(BaseLLM):
    """LeMUR provider backed by ``httpx.AsyncClient``."""

    name = "lemur"

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        final_model: str | None = None,
        max_output_size: int | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key or settings.assemblyai_api_key
        self._url = url or settings.lemur_url
        self._final_model = final_model or settings.lemur_final_model
        self._max_output_size = max_output_size or settings.lemur_max_output_size
        self._timeout = timeout
        self._transport = transport

    async def summarize(self, text: str, instructions: str, **kwargs) -> str:
        """Produce insight text for *text* following *instructions*."""
        if not self._api_key:
            raise RuntimeError("AssemblyAI API key not configured")

        body = {
            "prompt": instructions,
            "input_text": text,
            "final_model": kwargs.get("final_model", self._final_model),
            "max_output_size": kwargs.get("max_output_size", self._max_output_size),
        }

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self._timeout
            ) as client:
                response = await client.post(
                    self._url,
                    headers={"Authorization": self._api_key},
                    json=body,
                )
        except httpx.TimeoutException as exc:
            logger.warning("LeMUR request timed out: %s", exc)
            raise TimeoutError(f"LeMUR request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            logger.warning("LeMUR connection error: %s", exc)
            raise ConnectionError(f"Failed to connect to LeMUR: {exc}") from exc

        if response.status_code == 429 or response.status_code >= 500:
            logger.warning("LeMUR transient failure: HTTP %s", response.status_code)
            raise ConnectionError(
                f"LeMUR temporarily unavailable: HTTP {response.status_code} {response.text[:200]}"
            )
        if response.is_error:
            logger.error("LeMUR rejected request: HTTP %s", response.status_code)
            raise RuntimeError(
                f"Failed to generate insights: HTTP {response.status_code} {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise RuntimeError("LeMUR returned invalid JSON") from exc
        return data.get("response") or "Insights generation completed."
