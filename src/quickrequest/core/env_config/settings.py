"""
Pydantic settings model for QuickRequest clients.

Reads QUICKREQUEST_* environment variables and an optional .env file.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ...utils.sanitizer import mask_sensitive_data


class QuickRequestSettings(BaseSettings):
    """
    Client configuration from the environment.

    Reads from (highest priority first):
    1. Init kwargs (file values, explicit overrides)
    2. Environment variables (QUICKREQUEST_*)
    3. .env file
    4. Defaults

    Example .env file:
        QUICKREQUEST_BASE_URL=https://api.example.com
        QUICKREQUEST_TIMEOUT_MS=8000
        QUICKREQUEST_CACHE_TTL_MS=30000
        QUICKREQUEST_HEADERS={"X-App": "billing"}
        QUICKREQUEST_RETRY_MAX_ATTEMPTS=3
        QUICKREQUEST_LOG_ENABLED=true
        QUICKREQUEST_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix='QUICKREQUEST_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    base_url: str = Field(default="", description="Base URL for relative paths")
    headers: Dict[str, str] = Field(default_factory=dict, description="Default headers (JSON object)")
    timeout_ms: float = Field(default=0, ge=0, description="Per-attempt timeout, 0 = off")
    cache_ttl_ms: float = Field(default=0, ge=0, description="GET cache TTL, 0 = off")

    # Retry
    retry_max_attempts: int = Field(default=1, ge=1)
    retry_base_delay_ms: float = Field(default=1000, ge=0)
    retry_max_delay_ms: float = Field(default=10000, ge=0)
    retry_backoff_factor: float = Field(default=2.0, ge=1.0)

    # Logging
    log_enabled: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_format: Literal["json", "text"] = Field(default="text")
    log_enable_console: bool = Field(default=True)
    log_enable_file: bool = Field(default=False)
    log_file_path: Optional[str] = None
    log_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    log_backup_count: int = Field(default=5, ge=0)
    log_enable_correlation_id: bool = Field(default=True)

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator('log_format', mode='before')
    @classmethod
    def lower_format(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_file_path(self) -> "QuickRequestSettings":
        """log_file_path is required when log_enable_file=True."""
        if self.log_enable_file and not self.log_file_path:
            raise ValueError("log_file_path is required when log_enable_file=True")
        return self

    def summary(self) -> Dict[str, Any]:
        """Settings with secrets masked, safe to log."""
        return mask_sensitive_data(self.model_dump())
