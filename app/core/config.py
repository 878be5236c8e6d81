"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here. No scattered magic strings.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        host: Bind address when run with ``python -m app.main``.
        port: Bind port when run with ``python -m app.main``.
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_chat: Rate limit for the chat and voice endpoints.

    A market data provider with an empty API key is skipped by the
    gateway. An empty Groq key disables AI text generation and the
    assistant falls back to canned replies.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    project_name: str = "TradeChat"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    rate_limit_default: str = "60/minute"
    rate_limit_chat: str = "30/minute"

    # Market data providers
    fmp_api_key: str = ""
    fmp_base_url: str = "https://financialmodelingprep.com/api/v3"
    twelve_data_api_key: str = ""
    twelve_data_base_url: str = "https://api.twelvedata.com"
    market_data_timeout_seconds: float = 10.0
    quote_cache_ttl_seconds: float = 30.0  # 0 disables the cache
    quote_cache_max_entries: int = 256

    # Conversation history
    session_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite:///./chat_history.db"

    # AI text generation
    groq_api_key: str = ""
    groq_model: str = "llama-3.3-70b-versatile"
    groq_max_tokens: int = 1024
    groq_temperature: float = 0.7

    # Message validation
    message_min_length: int = 2
    message_max_length: int = 1000


settings = Settings()
