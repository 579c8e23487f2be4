"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 3000

    # Allowed origins for the dashboard and the embeddable widget
    frontend_url: str = "http://localhost:5173"
    widget_url: str = "http://localhost:3001"

    # Storage
    storage_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite+aiosqlite:///./supportdesk.db"
    database_echo: bool = False

    # Key-value store (refresh and reset tokens)
    kv_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379"

    # LLM Providers
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # LiteLLM
    litellm_primary_model: str = "gpt-3.5-turbo"
    litellm_fallback_model: str = "gpt-4o-mini"
    llm_max_tokens: int = 500
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 30.0

    # Security
    jwt_secret: str = Field(default="development-secret-key-change-in-production")
    jwt_algorithm: str = "HS256"
    access_token_expire_seconds: int = 60 * 60 * 24 * 7
    refresh_token_expire_seconds: int = 60 * 60 * 24 * 30
    reset_token_expire_seconds: int = 60 * 60
    bcrypt_rounds: int = 12

    # Outbound email (SMTP); sending is disabled while smtp_host is empty
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_from_email: str = "support@supportdesk.local"
    smtp_from_name: str = "SupportDesk"

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    # Conversation settings
    history_window: int = 10
    max_source_knowledge: int = 3
    default_page_size: int = 10
    default_message_page_size: int = 50
    max_page_size: int = 100

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def llm_configured(self) -> bool:
        """Whether any completion provider credentials are present."""
        return bool(self.openai_api_key or self.anthropic_api_key)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host)

    @property
    def allowed_origins(self) -> list[str]:
        return [self.frontend_url, self.widget_url, f"http://localhost:{self.app_port}"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
