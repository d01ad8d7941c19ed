"""Application configuration loaded from environment variables."""

import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from src.utils.errors import ConfigurationError

DEV_ENVIRONMENTS = ("development", "local")


def _env_list(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class AppConfig(BaseModel):
    """Runtime settings for the API and its collaborators."""
    environment: str = Field(default="production", description="NODE_ENV value")
    jwt_secret: str = Field(..., description="Shared secret for bearer tokens")
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_in_seconds: int = Field(default=7 * 24 * 3600, gt=0)
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    storage_bucket: str = Field(default="listing-images")
    datastore_timeout_seconds: float = Field(default=10.0, gt=0)
    datastore_read_retries: int = Field(default=2, ge=0, le=5)
    datastore_retry_delay_seconds: float = Field(default=0.2, ge=0)
    cors_origins: list[str] = Field(default_factory=list)
    api_version: str = Field(default="2.0.0")
    max_body_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    port: int = Field(default=5000)
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="json or text")
    log_mask_sensitive: bool = Field(default=True)
    log_correlation_id_header: str = Field(default="X-Correlation-ID")
    log_slow_operation_threshold_ms: int = Field(default=1000, ge=0)

    @field_validator("log_level")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("log_format")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in DEV_ENVIRONMENTS

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build config from the process environment."""
        environment = os.environ.get("NODE_ENV", "production").strip() or "production"
        secret = os.environ.get("JWT_SECRET", "").strip()

        if not secret:
            if environment.lower() not in DEV_ENVIRONMENTS:
                raise ConfigurationError("JWT_SECRET must be set")
            secret = "dev-only-secret"

        try:
            return cls(
                environment=environment,
                jwt_secret=secret,
                jwt_algorithm=os.environ.get("JWT_ALGORITHM", "HS256"),
                jwt_expires_in_seconds=int(os.environ.get("JWT_EXPIRES_IN_SECONDS", str(7 * 24 * 3600))),
                supabase_url=os.environ.get("SUPABASE_URL"),
                supabase_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY"),
                storage_bucket=os.environ.get("SUPABASE_STORAGE_BUCKET", "listing-images"),
                datastore_timeout_seconds=float(os.environ.get("DATASTORE_TIMEOUT_SECONDS", "10")),
                datastore_read_retries=int(os.environ.get("DATASTORE_READ_RETRIES", "2")),
                datastore_retry_delay_seconds=float(os.environ.get("DATASTORE_RETRY_DELAY_SECONDS", "0.2")),
                cors_origins=_env_list(
                    "CORS_ORIGINS",
                    "http://localhost:3000,http://localhost:5001",
                ),
                api_version=os.environ.get("API_VERSION", "2.0.0"),
                port=int(os.environ.get("PORT", "5000")),
                log_level=os.environ.get("LOG_LEVEL", "INFO"),
                log_format=os.environ.get("LOG_FORMAT", "json"),
                log_mask_sensitive=os.environ.get("LOG_MASK_SENSITIVE", "true").lower() == "true",
                log_correlation_id_header=os.environ.get("LOG_CORRELATION_ID_HEADER", "X-Correlation-ID"),
                log_slow_operation_threshold_ms=int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "1000")),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")
