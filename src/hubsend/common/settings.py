"""Configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Any, Literal

from pydantic import AliasChoices, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_RETRIES = 3


class Settings(BaseSettings):
    """
    Delivery settings loaded from environment variables.

    Every input also accepts the GitHub Actions ``INPUT_*`` name so the same
    process can run as an action step or as a plain CLI.
    """

    model_config = SettingsConfigDict(
        env_prefix="HUBSEND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Delivery inputs
    secret: str = Field(
        default="",
        validation_alias=AliasChoices("HUBSEND_SECRET", "INPUT_HMACSECRET"),
        description="HMAC key used to sign the payload",
        repr=False,
    )
    url: str = Field(
        default="",
        validation_alias=AliasChoices("HUBSEND_URL", "INPUT_URL"),
        description="Delivery target (http or https)",
    )
    data: str = Field(
        default="",
        validation_alias=AliasChoices("HUBSEND_DATA", "INPUT_DATA"),
        description="Raw payload; JSON objects and arrays are sent as structured values",
    )
    headers: str = Field(
        default="",
        validation_alias=AliasChoices("HUBSEND_HEADERS", "INPUT_HEADERS"),
        description="JSON object of extra request headers (override computed ones)",
    )
    timeout: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        ge=1,
        validation_alias=AliasChoices("HUBSEND_TIMEOUT", "INPUT_TIMEOUT"),
        description="Per-attempt request timeout in milliseconds",
    )
    retries: int = Field(
        default=DEFAULT_RETRIES,
        ge=1,
        validation_alias=AliasChoices("HUBSEND_RETRIES", "INPUT_RETRIES"),
        description="Maximum number of delivery attempts",
    )
    revision: str | None = Field(
        default=None,
        validation_alias=AliasChoices("HUBSEND_REVISION", "GITHUB_SHA"),
        description="Source revision sent in the X-Hub-SHA header",
    )
    output_file: str | None = Field(
        default=None,
        validation_alias=AliasChoices("HUBSEND_OUTPUT_FILE", "GITHUB_OUTPUT"),
        description="File receiving 'response=<json>' on success (GitHub Actions output file)",
    )
    metrics_file: str | None = Field(
        default=None,
        description="Prometheus text file written with delivery metrics after each run",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Log level for the hubsend logger",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Log renderer",
    )

    # Receiver
    receiver_host: str = Field(
        default="127.0.0.1",
        description="Host for the signature-verifying receiver",
    )
    receiver_port: int = Field(
        default=8088,
        description="Port for the signature-verifying receiver",
    )

    @field_validator("timeout", "retries", mode="before")
    @classmethod
    def _blank_uses_default(cls, value: Any, info: ValidationInfo) -> Any:
        # Unset action inputs arrive as empty strings
        if isinstance(value, str) and not value.strip():
            return DEFAULT_TIMEOUT_MS if info.field_name == "timeout" else DEFAULT_RETRIES
        return value

    @field_validator("revision", "output_file", "metrics_file", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def timeout_seconds(self) -> float:
        """Per-attempt timeout in seconds."""
        return self.timeout / 1000


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
