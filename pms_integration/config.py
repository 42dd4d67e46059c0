"""
Process configuration for the PMS integration layer.

Values come from the environment (or a .env file) and are read once at process
start via get_settings(). Webhook secrets are optional at load time: a missing
secret makes the matching receiver reject every request with 500.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .retry import RetryPolicy


class PMSIntegrationSettings(BaseSettings):
    """Environment-backed settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(default="development")

    # Webhook secrets
    cloudbeds_webhook_token: Optional[SecretStr] = Field(default=None)
    opera_webhook_secret: Optional[SecretStr] = Field(default=None)
    mews_webhook_secret: Optional[SecretStr] = Field(default=None)

    # Credential encryption (32-byte key, hex encoded)
    pms_encryption_key: Optional[SecretStr] = Field(default=None)

    # Outbound HTTP
    pms_http_timeout: float = Field(default=15.0, gt=0)
    pms_graphql_timeout: float = Field(default=30.0, gt=0)

    # Retry policy defaults
    pms_retry_max_retries: int = Field(default=3, ge=0, le=10)
    pms_retry_initial_delay: float = Field(default=1.0, ge=0)
    pms_retry_backoff_multiplier: float = Field(default=2.0, ge=1)
    pms_retry_max_delay: float = Field(default=30.0, gt=0)

    # Webhook processing
    pms_dead_letter_capacity: int = Field(default=100, ge=1)

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v.upper()

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.pms_retry_max_retries,
            initial_delay=self.pms_retry_initial_delay,
            backoff_multiplier=self.pms_retry_backoff_multiplier,
            max_delay=self.pms_retry_max_delay,
        )

    @staticmethod
    def secret_value(secret: Optional[SecretStr]) -> Optional[str]:
        if secret is None:
            return None
        value = secret.get_secret_value()
        return value or None


@lru_cache()
def get_settings() -> PMSIntegrationSettings:
    """Load settings once per process"""
    return PMSIntegrationSettings()
