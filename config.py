"""
Configuration management for the application.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Load .env file if it exists
try:
    from dotenv import load_dotenv

    # Load .env from project root
    env_path = Path(__file__).parent / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=True)
    else:
        # Try loading from current directory as fallback
        load_dotenv(override=True)
except ImportError:
    # python-dotenv not installed, skip loading .env
    pass


class Config:
    """Application configuration."""

    # Interview budget shared with the client's progress bar
    TOTAL_QUESTIONS: int = int(os.getenv("TOTAL_QUESTIONS", "12"))

    # Idle sessions older than this are evicted (0 disables eviction)
    SESSION_TTL_SECONDS: int = int(os.getenv("SESSION_TTL_SECONDS", "86400"))

    # Speech synthesis
    AUDIO_CACHE_DIR: str = os.getenv("AUDIO_CACHE_DIR", "audio_cache")
    ELEVEN_LABS_KEY: str | None = os.getenv("ELEVEN_LABS_KEY")
    ELEVEN_LABS_VOICE_ID: str = os.getenv("ELEVEN_LABS_VOICE_ID", "EXAVITQu4vr4xnSDxMaL")
    ELEVEN_LABS_MODEL_ID: str = os.getenv("ELEVEN_LABS_MODEL_ID", "eleven_multilingual_v2")
    TTS_TIMEOUT_SECONDS: float = float(os.getenv("TTS_TIMEOUT_SECONDS", "20"))
    PREWARM_DELAY_SECONDS: float = float(os.getenv("PREWARM_DELAY_SECONDS", "6"))

    # API configuration
    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    PORT: int = int(os.getenv("PORT", "3001"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def get_audio_dir(cls) -> str:
        """Get the audio cache directory, creating it if needed."""
        os.makedirs(cls.AUDIO_CACHE_DIR, exist_ok=True)
        return cls.AUDIO_CACHE_DIR

    @classmethod
    def speech_configured(cls) -> bool:
        return bool(cls.ELEVEN_LABS_KEY)

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        if cls.TOTAL_QUESTIONS < 1:
            raise ValueError(
                f"TOTAL_QUESTIONS must be positive, got {cls.TOTAL_QUESTIONS}. "
                "It must also match the client's progress total."
            )
        if cls.SESSION_TTL_SECONDS < 0:
            raise ValueError("SESSION_TTL_SECONDS cannot be negative")
        if not cls.speech_configured():
            logger.warning("ELEVEN_LABS_KEY not set; questions will be served without audio")
