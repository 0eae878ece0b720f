"""Application settings and configuration.

This module defines all configuration options for the Role Gate service.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The Discord credentials are required; everything else can be overridden
    via environment variables or an ``.env`` file.
    """

    # Application metadata
    app_name: str = Field(default="Role Gate", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # HTTP server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    static_dir: str | None = Field(default="public", alias="STATIC_DIR")

    # Discord collaborator
    bot_token: str = Field(alias="BOT_TOKEN")
    guild_id: str = Field(alias="GUILD_ID")
    role_id: str = Field(alias="ROLE_ID")
    discord_api_base_url: str = Field(
        default="https://discord.com/api/v10",
        alias="DISCORD_API_BASE_URL",
    )
    discord_http_timeout_seconds: float = Field(
        default=10.0,
        alias="DISCORD_HTTP_TIMEOUT_SECONDS",
    )
    discord_reconnect_interval_seconds: float = Field(
        default=30.0,
        alias="DISCORD_RECONNECT_INTERVAL_SECONDS",
    )

    # Token lifetimes
    challenge_ttl_seconds: int = Field(default=300, alias="CHALLENGE_TTL_SECONDS")
    liveness_ttl_seconds: int = Field(default=300, alias="LIVENESS_TTL_SECONDS")
    code_ttl_seconds: int = Field(default=180, alias="CODE_TTL_SECONDS")
    code_length: int = Field(default=5, alias="CODE_LENGTH")

    # Per-identity throttling
    rate_limit_max_requests: int = Field(default=3, alias="RATE_LIMIT_MAX_REQUESTS")
    rate_limit_window_seconds: int = Field(default=60, alias="RATE_LIMIT_WINDOW_SECONDS")

    # Background cleanup of expired tokens, codes and windows
    sweep_interval_seconds: float = Field(default=60.0, alias="SWEEP_INTERVAL_SECONDS")

    # CORS configuration for the browser front end
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["*"],
        alias="ALLOWED_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        """Accept the comma separated ``ALLOWED_ORIGINS`` format."""
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @property
    def public_config(self) -> dict[str, object]:
        """Return the non-secret settings clients may display.

        Returns:
            Dictionary of token lifetimes and throttling limits
        """
        return {
            "challenge_ttl_seconds": self.challenge_ttl_seconds,
            "liveness_ttl_seconds": self.liveness_ttl_seconds,
            "code_ttl_seconds": self.code_ttl_seconds,
            "code_length": self.code_length,
            "rate_limit": {
                "max_requests": self.rate_limit_max_requests,
                "window_seconds": self.rate_limit_window_seconds,
            },
        }


settings = Settings()  # type: ignore[call-arg]
