"""Logging setup for the gateway: dictConfig handlers plus structlog, with credential redaction."""

from __future__ import annotations

import logging
import logging.config
import re
from pathlib import Path
from typing import Any, Dict

import structlog

from .config import LoggingSettings

REDACTED = "***"

_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)\S+", re.IGNORECASE),
    re.compile(r"""(["']?api_?key["']?\s*[:=]\s*["']?)[^"'\s,&}]+""", re.IGNORECASE),
)


def redact(text: str) -> str:
    """Mask bearer tokens and ``apikey`` values in ``text``."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(rf"\g<1>{REDACTED}", text)
    return text


class RedactSecretsFilter(logging.Filter):
    """Rewrites each record's rendered message with secrets masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = redact(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def redact_event_dict(_logger: Any, _method: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in event_dict.items():
        if key.lower() in {"apikey", "api_key", "authorization"}:
            event_dict[key] = REDACTED
        elif isinstance(value, str):
            event_dict[key] = redact(value)
    return event_dict


def log_file_path(settings: LoggingSettings, service_name: str) -> Path:
    return Path(settings.log_dir) / f"{service_name}.log"


def configure_logging(settings: LoggingSettings, service_name: str = "factify-gateway") -> None:
    log_file = log_file_path(settings, service_name)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    level_name = settings.level.upper()
    level_value = getattr(logging, level_name, logging.INFO)

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "redact": {"()": RedactSecretsFilter},
        },
        "formatters": {
            "plain": {
                "format": f"%(asctime)s %(levelname)s {service_name} %(name)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "plain",
                "filters": ["redact"],
                "level": level_name,
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": str(log_file),
                "formatter": "plain",
                "filters": ["redact"],
                "maxBytes": settings.max_log_file_size_mb * 1024 * 1024,
                "backupCount": settings.backup_count,
                "encoding": "utf-8",
                "level": level_name,
            },
        },
        "root": {
            "handlers": ["console", "file"],
            "level": level_name,
        },
    }

    logging.config.dictConfig(logging_config)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            redact_event_dict,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        cache_logger_on_first_use=True,
    )
