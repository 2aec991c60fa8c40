"""
Settings Module (v1.2.0)
Centralized configuration from environment variables.
"""
import os
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Application settings from environment variables."""

    # API Keys
    openai_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None

    # LLM Configuration
    llm_enabled: bool = True

    # Generation limits
    max_outfit_count: int = 10
    max_concurrency: int = 4
    weekly_outfits_per_occasion: int = 2

    # Storage
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db_name: str = "aura_stylist"

    # Observability
    logging_enabled: bool = True
    log_dir: str = "logs"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            # API Keys
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            gemini_api_key=os.getenv("GEMINI_API_KEY"),

            # LLM Configuration
            llm_enabled=os.getenv("AURA_LLM_ENABLED", "true").lower() == "true",

            # Generation limits
            max_outfit_count=int(os.getenv("AURA_MAX_OUTFIT_COUNT", "10")),
            max_concurrency=int(os.getenv("AURA_MAX_CONCURRENCY", "4")),
            weekly_outfits_per_occasion=int(os.getenv("AURA_WEEKLY_OUTFITS_PER_OCCASION", "2")),

            # Storage
            mongo_uri=os.getenv("MONGO_URI", "mongodb://localhost:27017"),
            mongo_db_name=os.getenv("MONGO_DB_NAME", "aura_stylist"),

            # Observability
            logging_enabled=os.getenv("AURA_LOGGING_ENABLED", "true").lower() == "true",
            log_dir=os.getenv("AURA_LOG_DIR", "logs"),
        )

    def has_openai(self) -> bool:
        """Check if OpenAI API key is configured."""
        return bool(self.openai_api_key)

    def has_gemini(self) -> bool:
        """Check if Gemini API key is configured."""
        return bool(self.gemini_api_key)

    def to_dict(self) -> dict:
        """Export settings as dict (without sensitive keys)."""
        return {
            "llm_enabled": self.llm_enabled,
            "max_outfit_count": self.max_outfit_count,
            "max_concurrency": self.max_concurrency,
            "weekly_outfits_per_occasion": self.weekly_outfits_per_occasion,
            "mongo_db_name": self.mongo_db_name,
            "openai_configured": self.has_openai(),
            "gemini_configured": self.has_gemini(),
        }


def get_settings() -> Settings:
    """Get application settings (cached singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.info(f"Settings loaded: {_settings.to_dict()}")
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from environment."""
    global _settings
    _settings = Settings.from_env()
    logger.info(f"Settings reloaded: {_settings.to_dict()}")
    return _settings


# Singleton instance
_settings: Optional[Settings] = None
