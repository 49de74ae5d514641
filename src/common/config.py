"""
Configuration loader for the compensation intelligence pipeline.

Loads all settings from environment variables (.env file).
Validates required settings and provides type-safe access.
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """
    Centralized configuration for all pipeline components.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== MongoDB (secondary cache tier) =====
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "compensation")
    ANALYSIS_CACHE_COLLECTION: str = os.getenv("ANALYSIS_CACHE_COLLECTION", "analysis_cache")
    ENABLE_PERSISTENT_CACHE: bool = _env_bool("ENABLE_PERSISTENT_CACHE", "false")

    # ===== Completion service =====
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    LLM_BASE_URL: str = os.getenv("LLM_BASE_URL", "")
    ANALYSIS_MODEL: str = os.getenv("ANALYSIS_MODEL", "gpt-4o-mini")

    # ===== Cache =====
    CACHE_TTL_HOURS: float = float(os.getenv("CACHE_TTL_HOURS", "24"))
    CACHE_MAX_MEMORY_ENTRIES: int = int(os.getenv("CACHE_MAX_MEMORY_ENTRIES", "100"))
    CACHE_MAX_PERSISTENT_ENTRIES: int = int(os.getenv("CACHE_MAX_PERSISTENT_ENTRIES", "500"))

    # ===== Pipeline behavior =====
    # "lenient" returns a zero-confidence sentinel on synthesis parse failure,
    # "strict" raises. Applies to the read path only; recompute is always strict.
    SYNTHESIS_FAILURE_POLICY: str = os.getenv("SYNTHESIS_FAILURE_POLICY", "lenient").lower()
    PREFLIGHT_AVAILABILITY_CHECK: bool = _env_bool("PREFLIGHT_AVAILABILITY_CHECK", "false")
    PREFLIGHT_TIMEOUT_SECONDS: float = float(os.getenv("PREFLIGHT_TIMEOUT_SECONDS", "5"))

    # ===== Logging =====
    DEBUG_MODE: bool = _env_bool("DEBUG_MODE", "false")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "simple")
    ENABLE_STRUCTURED_EVENTS: bool = _env_bool("ENABLE_STRUCTURED_EVENTS", "false")

    @classmethod
    def validate(cls) -> None:
        """
        Validate that all required configuration is present.
        Raises ValueError if critical settings are missing.
        """
        required_settings = {
            "OPENAI_API_KEY": cls.OPENAI_API_KEY,
        }

        if cls.ENABLE_PERSISTENT_CACHE:
            required_settings["MONGODB_URI"] = cls.MONGODB_URI

        missing = [name for name, value in required_settings.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required configuration: {', '.join(missing)}. "
                f"Please check your .env file."
            )

        if cls.SYNTHESIS_FAILURE_POLICY not in ("lenient", "strict"):
            raise ValueError(
                f"SYNTHESIS_FAILURE_POLICY must be 'lenient' or 'strict', "
                f"got '{cls.SYNTHESIS_FAILURE_POLICY}'"
            )

    @classmethod
    def get_llm_api_key(cls) -> str:
        """Get the API key for completion calls."""
        return cls.OPENAI_API_KEY

    @classmethod
    def get_llm_base_url(cls) -> Optional[str]:
        """Completion base URL (None to use OpenAI directly)."""
        return cls.LLM_BASE_URL or None

    @classmethod
    def summary(cls) -> str:
        """Return a summary of the current configuration (safe for logging)."""
        return f"""
Configuration Summary:
  Completion API: {'✓ Configured' if cls.get_llm_api_key() else '✗ Missing'}
  Base URL: {cls.get_llm_base_url() or 'OpenAI (default)'}
  Analysis Model: {cls.ANALYSIS_MODEL}
  MongoDB: {'✓ Configured' if cls.MONGODB_URI else '✗ Missing'}
  Persistent Cache: {'Enabled' if cls.ENABLE_PERSISTENT_CACHE else 'Disabled'}
  Cache TTL: {cls.CACHE_TTL_HOURS}h (memory bound {cls.CACHE_MAX_MEMORY_ENTRIES})
  Synthesis Failure Policy: {cls.SYNTHESIS_FAILURE_POLICY}
        """.strip()


# Validate configuration on import (fail fast if misconfigured)
# Comment this out during development if you want to test without all keys
# Config.validate()
