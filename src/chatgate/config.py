"""Configuration management for Chatgate"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PROVIDER_ORDER = ["groq", "gemini", "cohere", "openai", "anthropic", "perplexity"]
FREE_PROVIDERS = ["groq", "gemini", "cohere"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="CHATGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Chatgate", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")

    # API Settings
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_prefix: str = Field(default="/api/v1", description="API prefix")

    # Orchestrator defaults, applied once at startup
    enabled_providers: List[str] = Field(
        default_factory=lambda: list(DEFAULT_PROVIDER_ORDER),
        description="Providers allowed to serve chat requests",
    )
    preferred_providers: List[str] = Field(
        default_factory=lambda: list(FREE_PROVIDERS),
        description="Providers tried first, in this order",
    )
    fallback_to_free: bool = Field(default=True, description="Try the next provider after a failure")

    # Upstream HTTP
    request_timeout: float = Field(default=30.0, description="Backend request timeout (seconds)")
    temperature: float = Field(default=0.7, description="Sampling temperature sent to every backend")
    max_tokens: int = Field(default=2048, description="Max tokens requested from every backend")

    # Per-provider model overrides
    groq_model: Optional[str] = None
    gemini_model: Optional[str] = None
    cohere_model: Optional[str] = None
    openai_model: Optional[str] = None
    anthropic_model: Optional[str] = None
    perplexity_model: Optional[str] = None

    # Per-provider endpoint overrides
    groq_base_url: Optional[str] = None
    gemini_base_url: Optional[str] = None
    cohere_base_url: Optional[str] = None
    openai_base_url: Optional[str] = None
    anthropic_base_url: Optional[str] = None
    perplexity_base_url: Optional[str] = None

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format (json or plain)")

    def provider_overrides(self, name: str) -> dict:
        """Collect the non-empty model/base_url overrides for one provider"""
        overrides = {}
        for key in ("model", "base_url"):
            value = getattr(self, f"{name}_{key}", None)
            if value:
                overrides[key] = value
        return overrides


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
