"""Application settings and configuration."""

import enum
from typing import Any, List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL


def _strip_inline_comment(value: Any) -> Any:
    """Strip inline # comment from env value (e.g. values copied from a .env file)."""
    if isinstance(value, str) and " #" in value:
        return value.split(" #")[0].strip()
    return value


class Environment(str, enum.Enum):
    """Environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, enum.Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreBackend(str, enum.Enum):
    """Key/value store backends for verification entries, sessions and histories."""

    MEMORY = "memory"
    REDIS = "redis"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="AGENT_BRIDGE_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: Environment = Field(default=Environment.DEVELOPMENT)
    debug: bool = Field(default=False)
    log_level: LogLevel = Field(default=LogLevel.INFO)

    # Application
    app_name: str = Field(default="Agent Bridge")
    app_version: str = Field(default="3.0.0")
    api_prefix: str = Field(default="/api")
    docs_url: Optional[str] = Field(default="/docs")
    redoc_url: Optional[str] = Field(default="/redoc")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)
    workers_count: int = Field(default=1)
    reload: bool = Field(default=False)

    # CORS
    cors_origins: Optional[str] = Field(default="*")
    cors_allow_credentials: bool = Field(default=False)
    max_request_size_bytes: int = Field(default=50 * 1024 * 1024)  # 50 MB

    # Completion API (OpenAI-compatible, Groq by default)
    completion_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("AGENT_BRIDGE_COMPLETION_API_KEY", "GROQ_API_KEY"),
    )
    completion_base_url: str = Field(default="https://api.groq.com/openai/v1")
    completion_model: str = Field(default="llama-3.3-70b-versatile")
    completion_max_tokens: int = Field(default=4096)
    completion_temperature: float = Field(default=0.7)
    completion_timeout_seconds: float = Field(default=60.0)

    # Email delivery (Resend)
    resend_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("AGENT_BRIDGE_RESEND_API_KEY", "RESEND_API_KEY"),
    )
    resend_api_url: str = Field(default="https://api.resend.com")
    email_from: str = Field(default="Open Claw Enterprise <onboarding@resend.dev>")
    email_timeout_seconds: float = Field(default=10.0)

    # Verification
    code_ttl_seconds: int = Field(default=600)
    max_code_attempts: int = Field(default=3)
    reveal_code: bool = Field(
        default=True,
        description="Echo the issued code in the send-code response even when the email "
                    "was delivered. The code is always echoed when delivery fails.",
    )
    session_ttl_seconds: int = Field(
        default=0,
        description="Session lifetime in seconds. 0 disables expiry.",
    )

    # Auth rate limiting
    auth_rate_limit_per_minute: int = Field(default=5)
    auth_rate_limit_per_hour: int = Field(default=20)

    # Conversation history
    history_limit: int = Field(default=50)
    history_window: int = Field(default=6)
    history_snippet_chars: int = Field(default=200)
    chain_context_chars: int = Field(default=1000)

    # Stores
    store_backend: StoreBackend = Field(default=StoreBackend.MEMORY)
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_password: Optional[str] = Field(default=None)
    redis_db: int = Field(default=0)
    redis_url: Optional[str] = Field(default=None)
    redis_key_prefix: str = Field(default="agent_bridge")

    # Monitoring
    prometheus_enabled: bool = Field(default=True)
    sentry_dsn: Optional[str] = Field(default=None)
    sentry_sample_rate: float = Field(default=1.0)

    @property
    def redis_url_property(self) -> URL:
        """Build Redis URL from components."""
        if self.redis_url:
            return URL(self.redis_url)

        return URL.build(
            scheme="redis",
            host=self.redis_host,
            port=self.redis_port,
            user=None,
            password=self.redis_password,
            path=f"/{self.redis_db}" if self.redis_db else "",
        )

    @property
    def completion_configured(self) -> bool:
        """Whether an API key for the completion service is present."""
        return bool(self.completion_api_key)

    @property
    def email_configured(self) -> bool:
        """Whether an API key for the email provider is present."""
        return bool(self.resend_api_key)

    def cors_origin_list(self) -> List[str]:
        """Parse the comma-separated CORS origins."""
        raw = self.cors_origins or "*"
        if raw.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    @model_validator(mode="before")
    @classmethod
    def strip_inline_comments_from_env(cls, data: Any) -> Any:
        """Strip inline # comments from all string values."""
        if isinstance(data, dict):
            return {k: _strip_inline_comment(v) if isinstance(v, str) else v for k, v in data.items()}
        return data

    @field_validator("code_ttl_seconds", "max_code_attempts", "history_limit", "history_window")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Reject zero or negative limits."""
        if v <= 0:
            raise ValueError("value must be greater than zero")
        return v

    @field_validator("session_ttl_seconds")
    @classmethod
    def validate_session_ttl(cls, v: int) -> int:
        """Session TTL may be zero (disabled) but never negative."""
        if v < 0:
            raise ValueError("session_ttl_seconds must be zero or positive")
        return v


# Global settings instance
settings = Settings()
