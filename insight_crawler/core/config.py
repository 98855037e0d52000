# core/config.py

"""
Configuration management for the insight crawler.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    # Service configuration
    app_name: str = "insight-crawler"
    debug: bool = False
    environment: str = "development"

    # Logging configuration
    log_level: str = "INFO"
    log_file_path: str = "logs/"
    enable_file_logging: bool = True

    # HTTP configuration
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        description="User agent sent with every request",
    )
    accept_language: str = "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7"
    http_timeout: float = Field(default=15.0, description="Default fetch timeout (s)")
    head_timeout: float = Field(default=5.0, description="Existence probe timeout (s)")

    # Resolver timeouts
    resolver_fetch_timeout: float = 15.0
    feed_probe_timeout: float = 3.0
    sitemap_probe_timeout: float = 5.0
    api_detection_timeout: float = 30.0

    # Resolver thresholds
    rss_confidence: float = Field(default=0.95, ge=0.0, le=1.0)
    sitemap_confidence: float = Field(default=0.9, ge=0.0, le=1.0)
    cms_confidence: float = Field(default=0.75, ge=0.0, le=1.0)
    spa_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    rule_trust_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    ai_type_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    api_confidence_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    url_pattern_accept_threshold: float = Field(default=0.85, ge=0.0, le=1.0)
    minimum_confidence: float = Field(default=0.3, ge=0.0, le=1.0)

    # Execution engine
    attempt_timeout: float = Field(default=30.0, description="Per-technique timeout (s)")
    content_fetch_delay_ms: int = Field(default=500, ge=0)
    content_fetch_concurrency: int = Field(default=5, ge=1)
    source_delay_ms: int = Field(default=2000, ge=0)
    source_concurrency: int = Field(default=1, ge=1)

    # Recency windows (days)
    default_within_days: int = 7
    sitemap_within_days: int = 14
    kakao_within_days: int = 14

    # Browser configuration
    browser_headless: bool = True
    browser_navigation_timeout: float = 30.0

    # Classifier configuration
    enable_ai_detection: bool = True
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    classifier_model: str = "gpt-4o-mini"
    classifier_timeout: float = 30.0

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        valid_envs = ["development", "staging", "production", "test"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of: {valid_envs}")
        return v.lower()

    @property
    def classifier_enabled(self) -> bool:
        """AI-assisted detection needs both the flag and a key"""
        return self.enable_ai_detection and bool(self.openai_api_key)


# Global settings instance
settings = Settings()
