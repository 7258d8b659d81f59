"""Application configuration using environment variables."""
import os
from functools import lru_cache
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings loaded from environment variables."""

    # Target document model
    SYSTEM_VERSION: str = os.getenv("SYSTEM_VERSION", "3.0.0")

    # Synthesis policies
    USE_HP_MAX_FOR_ROLLED_HP: bool = _env_flag("USE_HP_MAX_FOR_ROLLED_HP")
    NO_MODS: bool = _env_flag("NO_MODS")

    # Reference (SRD) documents, laid out as <path>/classes/*.json and <path>/subclasses/*.json
    SRD_DATA_PATH: str = os.getenv("SRD_DATA_PATH", "./data/srd")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Server
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8000"))
    DEBUG: bool = _env_flag("DEBUG")

    # CORS - Frontend URL
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
