"""
Configuration management via environment variables.

This module loads configuration from .env file using python-dotenv.
All configuration values are accessed through the Settings class.

Why environment variables:
1. Security - The Groq API key never lands in Git
2. Flexibility - Different values per environment (dev/prod)
3. Easy override - Tune loop limits and cache TTL without code changes
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Load .env file from project root
# This must happen before accessing os.environ
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    frozen=True makes the dataclass immutable, preventing accidental
    modification of settings at runtime.

    Attributes:
        app_name: Application identifier for logging
        app_env: Environment name (development, production)
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to also write daily log files under logs/
        groq_api_key: API key for Groq LLM service
        llm_model: Model identifier used for every completion
        llm_temperature: LLM creativity (0.0 = deterministic, 1.0 = creative)
        llm_max_tokens: Maximum response length
        llm_timeout_seconds: Per-request timeout for the model service
        max_iterations: Model rounds allowed per user turn
        max_same_calls_allowed: Identical tool calls tolerated per turn
        tool_timeout_seconds: Per-call timeout for tool execution
        tool_cache_ttl_seconds: Lifetime of a cached tool result
        tool_cache_sweep_seconds: Minimum interval between expiry sweeps
        tool_cache_max_entries: Upper bound on cached tool results
        search_max_results: Results requested from the search backend
        host: Bind address for the HTTP server
        port: Bind port for the HTTP server
    """
    # Application settings
    app_name: str
    app_env: str
    log_level: str
    log_to_file: bool

    # LLM settings
    groq_api_key: str
    llm_model: str
    llm_temperature: float
    llm_max_tokens: int
    llm_timeout_seconds: float

    # Conversation loop settings
    max_iterations: int
    max_same_calls_allowed: int
    tool_timeout_seconds: float

    # Tool cache settings
    tool_cache_ttl_seconds: int
    tool_cache_sweep_seconds: int
    tool_cache_max_entries: int

    # Search settings
    search_max_results: int

    # Server settings
    host: str
    port: int

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env.lower() == "development"

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env.lower() == "production"


def _get_env(key: str, default: Optional[str] = None) -> str:
    """
    Get environment variable with optional default.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value

    Raises:
        ValueError: If required variable is not set and no default provided
    """
    value = os.environ.get(key, default)
    if value is None:
        raise ValueError(
            f"Required environment variable '{key}' is not set. "
            f"Please check your .env file."
        )
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are read once; tests that change the environment call
    get_settings.cache_clear() afterwards.

    Returns:
        Settings instance with all configuration values

    Raises:
        ValueError: If required environment variables are missing
    """
    return Settings(
        # Application
        app_name=_get_env("APP_NAME", "JarvisAssistant"),
        app_env=_get_env("APP_ENV", "development"),
        log_level=_get_env("LOG_LEVEL", "INFO"),
        log_to_file=_get_env("LOG_TO_FILE", "true").lower() == "true",

        # LLM
        groq_api_key=_get_env("GROQ_API_KEY"),
        llm_model=_get_env("LLM_MODEL", "llama-3.3-70b-versatile"),
        llm_temperature=float(_get_env("LLM_TEMPERATURE", "0")),
        llm_max_tokens=int(_get_env("LLM_MAX_TOKENS", "1024")),
        llm_timeout_seconds=float(_get_env("LLM_TIMEOUT_SECONDS", "60")),

        # Conversation loop
        max_iterations=int(_get_env("MAX_ITERATIONS", "5")),
        max_same_calls_allowed=int(_get_env("MAX_SAME_CALLS_ALLOWED", "2")),
        tool_timeout_seconds=float(_get_env("TOOL_TIMEOUT_SECONDS", "20")),

        # Tool cache
        tool_cache_ttl_seconds=int(_get_env("TOOL_CACHE_TTL_SECONDS", "3600")),
        tool_cache_sweep_seconds=int(_get_env("TOOL_CACHE_SWEEP_SECONDS", "60")),
        tool_cache_max_entries=int(_get_env("TOOL_CACHE_MAX_ENTRIES", "1000")),

        # Search
        search_max_results=int(_get_env("SEARCH_MAX_RESULTS", "5")),

        # Server
        host=_get_env("HOST", "0.0.0.0"),
        port=int(_get_env("PORT", "3000")),
    )
