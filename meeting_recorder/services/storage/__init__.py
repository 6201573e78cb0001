"""
Storage module - async SQLite persistence for recordings.
"""

from .database import Base, close_db, get_session, init_db
from .models_db import Recording
from .repository import RecordingRepository

__all__ = [
    "Base",
    "Recording",
    "RecordingRepository",
    "close_db",
    "get_session",
    "init_db",
]
