"""
Meeting recorder - live streaming transcription with post-recording insights.
"""

__version__ = "0.1.0"
