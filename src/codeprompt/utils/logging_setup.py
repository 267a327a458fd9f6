"""
Logging configuration for codeprompt.

Provides environment-aware logging that:
- Writes to stderr so stdout stays clean for tree listings and prompts
- Outputs JSON in container environments or when explicitly requested
- Supports an optional rotating log file
- Includes custom TRACE level for per-rule match tracing
"""

import sys
import logging
import json
import os
from datetime import datetime, timezone
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

# Define TRACE level (lower number = more detailed)
TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

HUMAN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def trace(self, message, *args, **kwargs):
    if self.isEnabledFor(TRACE_LEVEL):
        self._log(TRACE_LEVEL, message, args, **kwargs)


logging.Logger.trace = trace


class JsonFormatter(logging.Formatter):
    """JSON formatter for container and machine-read logs"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'component': record.name,
            'message': record.getMessage(),
            'pid': os.getpid(),
        }

        if hasattr(record, 'extra'):
            log_data.update(record.extra)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def _resolve_level(level_str: str) -> int:
    if level_str.upper() == 'TRACE':
        return TRACE_LEVEL
    return getattr(logging, level_str.upper(), logging.WARNING)


def _wants_json() -> bool:
    if os.environ.get('CODEPROMPT_LOG_FORMAT', '').lower() == 'json':
        return True
    return (
        os.path.exists('/.dockerenv') or
        os.environ.get('DOCKER_CONTAINER', '').lower() == 'true'
    )


def configure_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    enable_rotation: bool = True,
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
) -> int:
    """
    Configure logging based on environment.

    Args:
        log_level: Override log level (defaults to CODEPROMPT_LOG_LEVEL, then
            LOG_LEVEL, then WARNING)
        log_file: Optional path to a log file written in addition to stderr
        enable_rotation: Enable log rotation for the file handler
        max_bytes: Maximum size of log file before rotation
        backup_count: Number of backup files to keep

    Returns:
        The numeric level that was applied
    """
    level_str = (
        log_level
        or os.environ.get('CODEPROMPT_LOG_LEVEL')
        or os.environ.get('LOG_LEVEL', 'WARNING')
    )
    level = _resolve_level(level_str)

    root_logger = logging.getLogger()
    root_logger.handlers = []

    use_json = _wants_json()

    console_handler = logging.StreamHandler(sys.stderr)
    if use_json:
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        if enable_rotation:
            file_handler = RotatingFileHandler(
                str(log_path),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8',
            )
        else:
            file_handler = logging.FileHandler(str(log_path), encoding='utf-8')
        file_handler.setFormatter(
            JsonFormatter() if use_json else logging.Formatter(HUMAN_FORMAT)
        )
        root_logger.addHandler(file_handler)

    root_logger.setLevel(level)

    logger = logging.getLogger('codeprompt')
    logger.debug(f"Logging configured - Level: {level_str.upper()}, JSON: {use_json}")
    return level


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
