"""
Application configuration management.

This module defines a ``Settings`` dataclass that reads its values from
environment variables at instantiation time.  Each configuration option
has a reasonable default which can be overridden by setting the
corresponding environment variable.  Credentials are threaded into the
aggregator and its source adapters through their constructors; no adapter
reads the environment on its own.
"""

from dataclasses import dataclass, field
import os
from typing import List, Optional


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass
class Settings:
    """Configuration values loaded from environment variables with defaults."""

    # Application settings
    ENVIRONMENT: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    PORT: int = field(default_factory=lambda: int(os.getenv("PORT", "5000")))
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Query log storage
    DATABASE_PATH: str = field(default_factory=lambda: os.getenv("DATABASE_PATH", "newsscope.db"))

    # Hosted search API used by the Brave adapter.  When absent the adapter
    # degrades to returning no candidates.
    BRAVE_SEARCH_API_KEY: Optional[str] = field(default_factory=lambda: os.getenv("BRAVE_SEARCH_API_KEY"))

    # LLM configuration for timeline synthesis
    GROQ_API_KEY: Optional[str] = field(default_factory=lambda: os.getenv("GROQ_API_KEY"))
    LLM_MODEL: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "llama-3.3-70b-versatile"))
    LLM_MAX_TOKENS: int = field(default_factory=lambda: int(os.getenv("LLM_MAX_TOKENS", "2048")))
    LLM_TEMPERATURE: float = field(default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.4")))

    # Aggregation pipeline
    SOURCE_TIMEOUT_SECONDS: float = field(default_factory=lambda: float(os.getenv("SOURCE_TIMEOUT_SECONDS", "10")))
    API_TIMEOUT_SECONDS: float = field(default_factory=lambda: float(os.getenv("API_TIMEOUT_SECONDS", "15")))
    MAX_ITEMS_PER_SOURCE: int = field(default_factory=lambda: int(os.getenv("MAX_ITEMS_PER_SOURCE", "10")))
    DEFAULT_DAYS_BACK: int = field(default_factory=lambda: int(os.getenv("DEFAULT_DAYS_BACK", "7")))
    USER_AGENT: str = field(default_factory=lambda: os.getenv("USER_AGENT", DEFAULT_USER_AGENT))

    # Optional comma separated list of adapter names to register.  Empty
    # means every built-in adapter is used.
    ENABLED_SOURCES: List[str] = field(default_factory=lambda: _split_csv(os.getenv("ENABLED_SOURCES")))

    # CORS
    CORS_ORIGINS: List[str] = field(default_factory=lambda: _split_csv(os.getenv("CORS_ORIGINS")) or [
        "http://localhost:3000",
        "http://localhost:5000",
        "http://localhost:8000",
    ])

    @property
    def is_development(self) -> bool:
        """Return True if the environment is set to development."""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def has_search_api_key(self) -> bool:
        return bool(self.BRAVE_SEARCH_API_KEY)


# Instantiate a single settings object that can be imported across the
# application.
settings = Settings()
