"""Logging configuration for the API and CLI."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "stack_info",
        "exc_info",
        "exc_text",
        "message",
    }
)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="text", description="Log format (json or text)")
    enable_console_output: bool = Field(
        default=True, description="Enable console logging"
    )
    sanitize_sensitive_data: bool = Field(
        default=True, description="Remove tokens and secrets from JSON logs"
    )


class StructuredFormatter(logging.Formatter):
    """JSON formatter emitting one object per log record."""

    def __init__(self, *, sanitize_sensitive: bool = True) -> None:
        """Initialize formatter with sanitization option."""
        super().__init__()
        self.sanitize_sensitive = sanitize_sensitive
        self.sensitive_fields = {
            "access_token",
            "refresh_token",
            "authorization",
            "api_key",
            "password",
            "client_secret",
        }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName if record.funcName else "<unknown>",
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        }
        if extra_fields:
            if self.sanitize_sensitive:
                extra_fields = self._sanitize_data(extra_fields)
            log_entry.update(extra_fields)

        return json.dumps(log_entry, default=self._json_serializer, ensure_ascii=False)

    def _sanitize_data(self, data: dict[str, Any]) -> dict[str, Any]:
        """Mask sensitive values, recursing into nested dicts and lists."""
        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            if self._is_sensitive_key(key):
                sanitized[key] = "***REDACTED***"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_data(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    self._sanitize_data(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                sanitized[key] = value
        return sanitized

    def _is_sensitive_key(self, key: str) -> bool:
        key_lower = key.lower()
        return any(sensitive in key_lower for sensitive in self.sensitive_fields)

    def _json_serializer(self, obj: Any) -> str:  # noqa: ANN401
        """JSON serializer for non-standard types."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Path):
            return str(obj)
        return str(obj)


def setup_logging(config: LoggingConfig) -> logging.Logger:
    """Configure the ``receiptsheet`` logger tree and return its root."""
    app_logger = logging.getLogger("receiptsheet")
    app_logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    # Clear existing handlers to avoid duplicates
    app_logger.handlers.clear()

    if config.enable_console_output:
        console_handler = logging.StreamHandler()
        if config.log_format == "json":
            console_handler.setFormatter(
                StructuredFormatter(sanitize_sensitive=config.sanitize_sensitive_data)
            )
        else:
            console_handler.setFormatter(logging.Formatter(TEXT_FORMAT))
        app_logger.addHandler(console_handler)

    return app_logger
