"""Centralized configuration management with environment-aware defaults.

This module implements the configuration system using Pydantic Settings,
providing type-safe configuration with validation and environment variable
support. The settings object is built once per process and cached, acting as
a read-only snapshot for the lifetime of the service.

Configuration sources (in order of precedence):
1. Environment variables (``PORT`` and ``MONGO_URI`` are read by those names)
2. .env file in project root
3. Default values in model definitions

Nested sections use the ``__`` delimiter, e.g. ``RATE_LIMIT_CONFIG__MAX_REQUESTS``.
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.constants import (
    DEFAULT_HSTS_MAX_AGE,
    DEFAULT_MAX_BODY_BYTES,
    DEFAULT_RATE_LIMIT_MAX_REQUESTS,
    DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
    RATE_LIMIT_MESSAGE,
)


class LogConfig(BaseModel):
    """Logging configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_formatter_type: Literal["console", "json"] | None = Field(
        default=None,
        description="Log output formatter. Auto-detected if not specified.",
    )
    excluded_paths: list[str] = Field(
        default_factory=lambda: ["/health"],
        description="Paths to exclude from request logging",
    )
    slow_request_threshold_ms: int = Field(
        default=1000,
        gt=0,
        description="Threshold for slow request warnings (milliseconds)",
    )
    sensitive_fields: list[str] = Field(
        default_factory=lambda: [
            "password",
            "token",
            "secret",
            "api_key",
            "authorization",
            "mongo_uri",
        ],
        description="Field names to redact",
    )


class ObservabilityConfig(BaseModel):
    """OpenTelemetry tracing configuration."""

    enable_tracing: bool = Field(
        default=False,
        description="Enable OpenTelemetry tracing",
    )
    exporter_type: Literal["console", "otlp", "none"] = Field(
        default="console",
        description="Trace exporter type. Defaults to console for development.",
    )
    exporter_endpoint: str | None = Field(
        default=None,
        description="OTLP exporter endpoint",
    )
    trace_sample_rate: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Trace sampling rate (0.0 to 1.0)",
    )

    @field_validator("exporter_endpoint", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        if v == "":
            return None
        return v


class SecurityHeadersConfig(BaseModel):
    """Hardening headers added to every response."""

    hsts_enabled: bool = Field(default=True, description="Send HSTS header")
    hsts_max_age: int = Field(
        default=DEFAULT_HSTS_MAX_AGE,
        ge=0,
        description="HSTS max-age in seconds",
    )
    hsts_include_subdomains: bool = Field(
        default=True, description="Add includeSubDomains to HSTS"
    )
    hsts_preload: bool = Field(default=False, description="Add preload to HSTS")
    frame_options: Literal["DENY", "SAMEORIGIN"] = Field(
        default="DENY", description="X-Frame-Options value"
    )
    referrer_policy: str = Field(
        default="no-referrer", description="Referrer-Policy value"
    )
    content_security_policy: str | None = Field(
        default=None,
        description="Content-Security-Policy value. Omitted when not set.",
    )

    @field_validator("content_security_policy", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        if v == "":
            return None
        return v


class CorsConfig(BaseModel):
    """Cross-origin policy. The defaults allow every origin."""

    allow_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed origins"
    )
    allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        description="Allowed methods",
    )
    allow_headers: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed request headers"
    )
    allow_credentials: bool = Field(
        default=False, description="Allow credentialed requests"
    )
    max_age: int = Field(default=600, ge=0, description="Preflight cache seconds")


class BodyParserConfig(BaseModel):
    """Request body parsing limits and formats."""

    max_body_bytes: int = Field(
        default=DEFAULT_MAX_BODY_BYTES,
        gt=0,
        description="Largest accepted request body in bytes",
    )
    parse_json: bool = Field(default=True, description="Parse JSON bodies")
    parse_urlencoded: bool = Field(
        default=True, description="Parse form-encoded bodies"
    )
    strict_json: bool = Field(
        default=True,
        description="Only accept objects and arrays at the top level of JSON bodies",
    )


class RateLimitConfig(BaseModel):
    """Fixed-window request limiting per client address."""

    enabled: bool = Field(default=True, description="Enable rate limiting")
    max_requests: int = Field(
        default=DEFAULT_RATE_LIMIT_MAX_REQUESTS,
        gt=0,
        description="Requests allowed per client per window",
    )
    window_seconds: int = Field(
        default=DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
        gt=0,
        description="Length of the counting window in seconds",
    )
    status_code: int = Field(
        default=429,
        ge=400,
        le=499,
        description="Status code sent when the limit is exceeded",
    )
    message: str = Field(
        default=RATE_LIMIT_MESSAGE,
        description="Body sent when the limit is exceeded",
    )


class DatastoreConfig(BaseModel):
    """Document store connection settings (the URI itself is ``MONGO_URI``)."""

    database_name: str | None = Field(
        default=None,
        description="Database to use. Falls back to the URI's default database.",
    )
    server_selection_timeout_ms: int = Field(
        default=5000,
        gt=0,
        description="How long to wait for a reachable server",
    )
    connect_timeout_ms: int = Field(
        default=5000,
        gt=0,
        description="Socket connect timeout",
    )
    operation_timeout_ms: int = Field(
        default=10000,
        gt=0,
        description="Client-side timeout applied to every datastore operation",
    )
    max_pool_size: int = Field(
        default=100, ge=1, description="Maximum pooled connections"
    )
    min_pool_size: int = Field(
        default=0, ge=0, description="Minimum pooled connections"
    )
    required_on_startup: bool = Field(
        default=False,
        description="Abort startup when the first connection attempt fails",
    )

    @field_validator("database_name", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        if v == "":
            return None
        return v


class Settings(BaseSettings):
    """Main settings class for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        env_nested_delimiter="__",
        populate_by_name=True,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(default="InsightTrack", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment the application is running in",
    )
    debug: bool = Field(default=True, description="Debug mode flag")

    # API settings
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(
        default=5000,
        validation_alias=AliasChoices("PORT", "API_PORT"),
        description="API port",
    )
    docs_url: str | None = Field(default="/docs", description="Swagger UI URL")
    redoc_url: str | None = Field(default="/redoc", description="ReDoc URL")
    openapi_url: str | None = Field(
        default="/openapi.json", description="OpenAPI schema URL"
    )

    # Datastore connection string
    mongo_uri: str | None = Field(
        default=None,
        validation_alias=AliasChoices("MONGO_URI", "MONGO_URL"),
        description="Document store connection string (mongodb://...)",
    )

    log_config: LogConfig = Field(
        default_factory=LogConfig, description="Logging configuration"
    )
    observability_config: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig, description="Observability configuration"
    )
    security_headers_config: SecurityHeadersConfig = Field(
        default_factory=SecurityHeadersConfig,
        description="Security headers configuration",
    )
    cors_config: CorsConfig = Field(
        default_factory=CorsConfig, description="Cross-origin configuration"
    )
    body_parser_config: BodyParserConfig = Field(
        default_factory=BodyParserConfig, description="Body parser configuration"
    )
    rate_limit_config: RateLimitConfig = Field(
        default_factory=RateLimitConfig, description="Rate limiting configuration"
    )
    datastore_config: DatastoreConfig = Field(
        default_factory=DatastoreConfig, description="Datastore configuration"
    )

    def model_post_init(self, __context: object) -> None:
        """Post initialization to set environment-based defaults."""
        super().model_post_init(__context)

        if self.log_config.log_formatter_type is None:
            self.log_config.log_formatter_type = self._detect_formatter()

    def _detect_formatter(self) -> Literal["console", "json"]:
        """Auto-detect log formatter based on environment."""
        # Container platforms collect stdout as structured logs
        if os.getenv("K_SERVICE") or os.getenv("AWS_EXECUTION_ENV"):
            return "json"
        if self.environment == "development":
            return "console"
        return "json"

    @field_validator("docs_url", "redoc_url", "openapi_url", "mongo_uri", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        _ = cls
        if v == "":
            return None
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
