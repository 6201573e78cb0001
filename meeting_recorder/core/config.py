"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Meeting recorder settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        assemblyai_api_key: Long-lived key exchanged for streaming tokens.
        insight_provider: Which LLM backend produces insights ("claude", "ollama", "lemur").
        max_recording_seconds: Sessions stop automatically after this many seconds.
        database_url: Async SQLAlchemy connection string for SQLite.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- AssemblyAI streaming ---
    assemblyai_api_key: str = ""  # Required for streaming tokens and LeMUR
    streaming_token_url: str = "https://api.assemblyai.com/v3/streaming/token"
    streaming_token_expires_in: int = 3600  # Seconds a streaming token stays valid
    streaming_ws_url: str = "wss://streaming.assemblyai.com/v3/ws"
    speech_model: str = "universal-streaming-english"  # Passed through untouched
    format_turns: bool = True

    # --- Audio capture ---
    sample_rate: int = 16000
    frame_duration_ms: int = 50  # ~50 ms of audio per outbound frame
    capture_device: str | None = None  # sounddevice device name/index; None = default
    capture_blocksize: int = 1024

    # --- Session policy ---
    max_recording_seconds: int = 3600  # Auto-stop ceiling (one hour)
    termination_timeout: float = 2.0  # Seconds to wait for the service's Termination

    # --- Insights ---
    # Selects the LLM backend: "claude" for Anthropic API, "ollama" for local
    # models, "lemur" for AssemblyAI LeMUR
    insight_provider: str = "claude"
    insight_max_attempts: int = 3
    insight_retry_min_wait: float = 1.0
    insight_retry_max_wait: float = 16.0

    # Claude (Anthropic API) settings
    claude_api_key: str = ""  # Required when insight_provider="claude"
    claude_model: str = "claude-sonnet-4-20250514"

    # Ollama (local LLM) settings
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"

    # AssemblyAI LeMUR settings
    lemur_url: str = "https://api.assemblyai.com/lemur/v3/generate/task"
    lemur_final_model: str = "anthropic/claude-3-5-sonnet"
    lemur_max_output_size: int = 2000

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level

    # --- Storage ---
    database_url: str = "sqlite+aiosqlite:///data/recordings.db"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
