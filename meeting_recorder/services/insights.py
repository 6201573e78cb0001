"""
Post-recording insight generation.

Turns a finished meeting transcript into a structured written summary
using the configured LLM provider, and classifies failures as transient
(retry) or terminal (give up) for the insight workflow.
"""

import logging

from meeting_recorder.core.exceptions import WorkflowTerminalError, WorkflowTransientError
from meeting_recorder.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)

INSIGHT_INSTRUCTIONS = (
    "You are analyzing a meeting transcript produced by live speech recognition. "
    "Extract and summarize:\n"
    "1. Main topics discussed\n"
    "2. Decisions that were made\n"
    "3. Action items, with owners when they are named\n"
    "4. Open questions and follow-ups\n"
    "5. Any other important notes or concerns\n\n"
    "Format the response as a clear, structured summary suitable for meeting records. "
    "The transcript may contain recognition errors; do not invent content that is not "
    "supported by it. Preserve the original language of the transcript."
)


class InsightGenerator:
    """Runs one summarization call and maps its failure modes.

    Args:
        llm: An LLM provider implementing ``BaseLLM``.
        instructions: Prompt describing the insight format.
    """

    def __init__(self, llm: BaseLLM, instructions: str = INSIGHT_INSTRUCTIONS) -> None:
        self._llm = llm
        self._instructions = instructions

    @property
    def provider(self) -> str:
        return self._llm.name

    async def generate(self, transcript: str) -> str:
        """Return insight text for *transcript*.

        Raises:
            WorkflowTransientError: Connection failures, timeouts, rate limits
                and server-side errors.
            WorkflowTerminalError: Empty transcripts, empty responses and any
                other provider failure.
        """
        if not transcript or not transcript.strip():
            raise WorkflowTerminalError("Transcript is empty; nothing to summarize")

        try:
            text = await self._llm.summarize(transcript, self._instructions)
        except (ConnectionError, TimeoutError) as exc:
            logger.warning("Transient insight failure (%s): %s", self.provider, exc)
            raise WorkflowTransientError(str(exc)) from exc
        except Exception as exc:
            logger.error("Insight generation failed (%s): %s", self.provider, exc)
            raise WorkflowTerminalError(str(exc)) from exc

        text = (text or "").strip()
        if not text:
            raise WorkflowTerminalError(f"{self.provider} returned an empty response")
        return text
