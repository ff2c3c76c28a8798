"""
Configuration Management Module

Handles tracing and logging configuration using Pydantic Settings.
Loads from environment variables and .env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Application Settings
    # =========================================================================
    app_env: Literal["development", "staging", "production"] = Field(default="development")
    app_version: str = Field(default="0.1.0")

    # =========================================================================
    # Logging Settings
    # =========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_json: bool = Field(default=False)
    log_dir: str | None = Field(default=None)

    # =========================================================================
    # OpenTelemetry Settings
    # =========================================================================
    enable_tracing: bool = Field(default=True)
    otel_service_name: str = Field(default="otelspan")
    otel_tracer_name: str = Field(default="otelspan")
    otel_exporter_type: Literal["otlp", "console", "none"] | str = Field(default="otlp")
    otel_exporter_otlp_endpoint: str = Field(default="http://localhost:4317")
    otel_sample_rate: float = Field(default=1.0)

    @field_validator("otel_sample_rate")
    @classmethod
    def check_sample_rate(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"otel_sample_rate must be within [0, 1], got {v}")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
