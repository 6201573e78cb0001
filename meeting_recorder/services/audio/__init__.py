"""
Audio module - microphone capture and PCM framing.
"""

from .chunker import AudioFrame, Chunker

__all__ = ["AudioFrame", "Chunker"]
