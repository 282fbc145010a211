"""Client configuration with validation."""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 50 MiB, the size limit the upload form has always enforced.
DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024


class Settings(BaseSettings):
    """
    doctree settings.

    Every field can be set through a ``DOCTREE_``-prefixed environment
    variable or a ``.env`` file, e.g. ``DOCTREE_API_URL``.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCTREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote store
    api_url: str = Field(
        default="http://localhost:8000/api",
        description="Base URL of the folders/documents REST API"
    )
    api_token: str = Field(
        default="",
        description="Bearer token; empty sends unauthenticated requests"
    )
    api_timeout: float = Field(
        default=30.0,
        description="Per-request timeout in seconds"
    )
    # Retries apply to idempotent requests only (GET/PUT/DELETE).
    max_retries: int = Field(
        default=3,
        description="Attempts per idempotent request on transient failure"
    )
    retry_base_delay: float = Field(
        default=1.0,
        description="Backoff base in seconds; doubles per attempt"
    )

    # Uploads
    max_upload_bytes: int = Field(
        default=DEFAULT_MAX_UPLOAD_BYTES,
        description="Largest file accepted by the upload queue"
    )
    allowed_mime_types: str = Field(
        default="",
        description="Comma-separated MIME allow-list (empty = allow all)"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_allowed_mime_types(self) -> List[str]:
        """Parse the allow-list into normalized MIME types."""
        return [
            t.strip().lower()
            for t in self.allowed_mime_types.split(',')
            if t.strip()
        ]

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ('json', 'text'):
            raise ValueError("Invalid log format. Must be 'json' or 'text'")
        return v_lower

    @field_validator('max_upload_bytes')
    @classmethod
    def validate_max_upload_bytes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_upload_bytes must be positive")
        return v


# Global settings instance
settings = Settings()
