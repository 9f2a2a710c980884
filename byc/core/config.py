"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """BYC assessment settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        capture_provider: Capture backend ("local" for camera + microphone,
            "synthetic" for a generated in-process device).
        countdown_seconds: Number of one-second ticks before capture begins.
        questions_file: Optional JSON file overriding the built-in prompts.
        database_url: Async SQLAlchemy connection string for SQLite.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Capture device ---
    # "local" opens the webcam via OpenCV and the microphone via sounddevice
    capture_provider: str = "local"
    camera_index: int = 0
    video_width: int = 1280
    video_height: int = 720
    video_fps: int = 30
    audio_sample_rate: int = 16000
    audio_channels: int = 1

    # --- Interview flow ---
    countdown_seconds: int = 3
    low_time_threshold: int = 30  # Seconds left before the timer is flagged
    questions_file: str = ""  # Empty = built-in question bank

    # --- Storage ---
    # Paths are relative to the project root; absolute paths also supported
    database_url: str = "sqlite+aiosqlite:///data/byc.db"
    recordings_dir: str = "data/recordings"  # Per-session artifact directories

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level
    cors_origins: list[str] = [
        "http://localhost:8501",  # Streamlit
        "http://localhost:3000",  # Dev frontend
    ]
    api_base_url: str = "http://localhost:8000"  # Used by the Streamlit client


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
