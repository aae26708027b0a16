"""Application configuration using Pydantic BaseSettings."""

import logging

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from genmesh.models.generation_request import ModelType

# GaussianDreamer (text-to-PLY) release pinned by the original deployment
DEFAULT_PLY_MODEL_VERSION = "138abc0aed076d5a1d3c17c5f157e9092e6279c8c1d7d92f1618dc7f707290a4"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # CORS Configuration
    cors_origins: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")

    # Server Configuration
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    # Replicate inference provider
    replicate_api_token: str = Field(default="", alias="REPLICATE_API_TOKEN")
    dynamic_glb_model_version: str = Field(default="", alias="DYNAMIC_GLB_MODEL_VERSION")
    ply_model_version: str = Field(default=DEFAULT_PLY_MODEL_VERSION, alias="PLY_MODEL_VERSION")
    poll_interval_seconds: float = Field(default=1.0, alias="POLL_INTERVAL_SECONDS")
    poll_max_wait_seconds: float | None = Field(default=None, alias="POLL_MAX_WAIT_SECONDS")

    # Object storage for uploaded input images (any S3-compatible endpoint)
    storage_endpoint: str = Field(default="s3.amazonaws.com", alias="STORAGE_ENDPOINT")
    storage_region: str = Field(default="", alias="STORAGE_REGION")
    storage_access_key: str = Field(default="", alias="STORAGE_ACCESS_KEY")
    storage_secret_key: str = Field(default="", alias="STORAGE_SECRET_KEY")
    storage_bucket: str = Field(default="", alias="STORAGE_BUCKET")
    storage_secure: bool = Field(default=True, alias="STORAGE_SECURE")
    upload_url_expiry_seconds: int = Field(default=3600, alias="UPLOAD_URL_EXPIRY_SECONDS")

    # Output asset retrieval
    asset_fetch_timeout_seconds: float = Field(default=60.0, alias="ASSET_FETCH_TIMEOUT_SECONDS")

    @field_validator("poll_interval_seconds")
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("POLL_INTERVAL_SECONDS must be greater than zero")
        return v

    @field_validator("upload_url_expiry_seconds")
    @classmethod
    def validate_upload_expiry(cls, v: int) -> int:
        # S3 presigned URLs are capped at seven days
        if not 1 <= v <= 604800:
            raise ValueError("UPLOAD_URL_EXPIRY_SECONDS must be between 1 and 604800")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def model_versions(self) -> dict[ModelType, str]:
        """Discriminant to pinned model version mapping."""
        return {
            ModelType.DYNAMIC_GLB: self.dynamic_glb_model_version,
            ModelType.PLY: self.ply_model_version,
        }

    @property
    def storage_configured(self) -> bool:
        return bool(self.storage_bucket and self.storage_access_key and self.storage_secret_key)

    def missing_config(self) -> list[str]:
        """List configuration needed for outbound calls that is not set.

        Missing values do not prevent startup: requests that need them fail with a
        ConfigurationError instead, so the page and health check stay reachable.
        """
        missing = []

        if not self.replicate_api_token:
            missing.append(
                "REPLICATE_API_TOKEN: Get your API token from https://replicate.com/account/api-tokens"
            )

        for model_type, version in self.model_versions.items():
            if not version:
                missing.append(f"{model_type.value.upper()}_MODEL_VERSION: pinned model version id")

        if not self.storage_configured:
            missing.append(
                "STORAGE_BUCKET / STORAGE_ACCESS_KEY / STORAGE_SECRET_KEY: required for image uploads"
            )

        return missing


def configure_logging(settings: Settings) -> None:
    """Configure structlog based on application environment.

    - Production: JSON output for log aggregation
    - Development: Console output for human readability
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if settings.app_env == "production":
        # JSON output for production (log aggregation)
        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(),
            cache_logger_on_first_use=True,
        )
    else:
        # Console output for development (human-readable)
        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.dev.ConsoleRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(),
            cache_logger_on_first_use=True,
        )
