"""Tests for insight generation and failure classification."""

import pytest

from meeting_recorder.core.exceptions import WorkflowTerminalError, WorkflowTransientError
from meeting_recorder.services.insights import INSIGHT_INSTRUCTIONS, InsightGenerator


class TestGenerate:
    async def test_returns_stripped_text(self, mock_llm):
        mock_llm.summarize.return_value = "  summary text \n"

        result = await InsightGenerator(mock_llm).generate("we agreed to ship friday")

        assert result == "summary text"
        mock_llm.summarize.assert_awaited_once_with(
            "we agreed to ship friday", INSIGHT_INSTRUCTIONS
        )

    async def test_custom_instructions(self, mock_llm):
        await InsightGenerator(mock_llm, instructions="Just action items").generate("text")
        assert mock_llm.summarize.call_args.args[1] == "Just action items"

    @pytest.mark.parametrize("transcript", ["", "   ", "\n\t"])
    async def test_blank_transcript_is_terminal(self, mock_llm, transcript):
        with pytest.raises(WorkflowTerminalError, match="empty"):
            await InsightGenerator(mock_llm).generate(transcript)
        mock_llm.summarize.assert_not_called()

    @pytest.mark.parametrize("error", [ConnectionError("refused"), TimeoutError("slow")])
    async def test_transient_failures(self, mock_llm, error):
        mock_llm.summarize.side_effect = error
        with pytest.raises(WorkflowTransientError):
            await InsightGenerator(mock_llm).generate("text")

    async def test_other_failures_are_terminal(self, mock_llm):
        mock_llm.summarize.side_effect = RuntimeError("invalid request")
        with pytest.raises(WorkflowTerminalError, match="invalid request"):
            await InsightGenerator(mock_llm).generate("text")

    async def test_empty_response_is_terminal(self, mock_llm):
        mock_llm.summarize.return_value = "   "
        with pytest.raises(WorkflowTerminalError, match="empty response"):
            await InsightGenerator(mock_llm).generate("text")

    def test_provider_name(self, mock_llm):
        assert InsightGenerator(mock_llm).provider == "mock"
