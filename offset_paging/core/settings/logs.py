"""Logging configuration settings."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Structured logging configuration.

    Environment variables use LOG_ prefix.
    Example: LOG_LEVEL=DEBUG, LOG_JSON_LOGS=false
    """

    service_name: str = Field(
        default="offset-paging",
        description="Service name to include in log records (static field in JSON)",
    )

    level: LogLevel = Field(
        default="INFO",
        description="Root logger level (DEBUG|INFO|WARNING|ERROR|CRITICAL)",
    )

    json_logs: bool = Field(
        default=True,
        description="Enable JSON Lines (JSONL) formatted structured logs",
    )

    capture_warnings: bool = Field(
        default=True,
        description="Forward Python warnings to the logging system",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    def to_logging_kwargs(self) -> dict[str, Any]:
        """Convert settings into keyword arguments for configure_logging()."""
        return {
            "log_level": self.level,
            "json_logs": self.json_logs,
            "service_name": self.service_name,
            "capture_warnings": self.capture_warnings,
        }
