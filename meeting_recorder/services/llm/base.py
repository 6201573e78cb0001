"""
Abstract base class for LLM providers.

All LLM implementations (Claude, Ollama, LeMUR) must implement this
interface, enabling provider-agnostic insight generation.

Providers translate their SDK errors into standard Python exceptions:
``ConnectionError`` / ``TimeoutError`` for transient failures worth
retrying, ``RuntimeError`` for everything else. Providers do not retry on
their own; the insight workflow owns the retry policy.
"""

from abc import ABC, abstractmethod


class BaseLLM(ABC):
    """Interface that every LLM provider must implement."""

    name: str = "llm"

    @abstractmethod
    async def summarize(self, text: str, instructions: str, **kwargs) -> str:
        """Produce free-form insight text about *text*.

        Args:
            text: Source text to analyze (e.g. a meeting transcript).
            instructions: What to extract and how to format it.
            **kwargs: Provider-specific options (temperature, max_tokens, etc.).

        Returns:
            The model's text response.
        """
