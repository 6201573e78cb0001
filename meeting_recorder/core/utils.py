"""Shared utility functions for the meeting recorder."""

from datetime import datetime


def format_duration(seconds: int) -> str:
    """Render seconds as ``m:ss`` or ``h:mm:ss`` once past an hour."""
    hours, rest = divmod(max(int(seconds), 0), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def default_title(now: datetime | None = None) -> str:
    """Title given to recordings started without one."""
    now = now or datetime.now()
    return f"Meeting {now:%Y-%m-%d %H:%M:%S}"
