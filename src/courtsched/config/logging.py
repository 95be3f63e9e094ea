"""Logging configuration utilities."""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path

from courtsched.config.error_aggregator import init_error_aggregator
from courtsched.config.logging_config import LoggingConfig
from courtsched.config.logging_config import load_logging_config
from courtsched.config.logging_filters import CorrelationFilter
from courtsched.config.logging_filters import SensitiveDataFilter


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, include_timestamp: bool = True):
        """Initialize formatter.

        Args:
            include_timestamp: Whether to include timestamp in output
        """
        self.include_timestamp = include_timestamp
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON formatted string
        """
        data = {
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage()
        }

        if self.include_timestamp:
            data['timestamp'] = datetime.fromtimestamp(record.created).isoformat()

        if record.exc_info:
            data['exception'] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            data.update(record.extra_fields)

        return json.dumps(data, default=str)

class ColoredFormatter(logging.Formatter):
    """Formatter that adds color to console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with color.

        Args:
            record: Log record to format

        Returns:
            Colored string
        """
        color = self.COLORS.get(record.levelname, self.RESET) if self.use_color else ''
        reset = self.RESET if self.use_color else ''

        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S,%f')[:-3]
        msg = record.getMessage()

        context = ""
        if hasattr(record, 'extra_fields'):
            fields = [
                f"\n    {key}: {value}"
                for key, value in record.extra_fields.items()
                if value not in (None, '')
            ]
            if fields:
                context = " |" + "".join(fields)

        if record.exc_info:
            msg = f"{msg}\n{self.formatException(record.exc_info)}"

        return f"{color}{timestamp} - {record.name} - {record.levelname} - {msg}{context}{reset}"

def get_console_handler(formatter: logging.Formatter) -> logging.StreamHandler:
    """Create console handler.

    Args:
        formatter: Formatter to use

    Returns:
        Configured console handler
    """
    # stdout carries command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    return console_handler

def get_file_handler(
    log_file: str | Path,
    formatter: logging.Formatter,
    max_bytes: int,
    backup_count: int
) -> logging.handlers.RotatingFileHandler:
    """Create rotating file handler.

    Args:
        log_file: Path to log file
        formatter: Formatter to use
        max_bytes: Maximum file size in bytes
        backup_count: Number of backup files to keep

    Returns:
        Configured file handler
    """
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count
    )
    file_handler.setFormatter(formatter)
    return file_handler

def setup_logging(
    config: LoggingConfig | None = None,
    verbose: bool = False,
    log_file: str | None = None,
    aggregate_errors: bool = True
) -> None:
    """Set up logging configuration.

    Args:
        config: Logging configuration, loaded from the packaged YAML if omitted
        verbose: Log at the verbose level instead of the default level
        log_file: Log file path overriding the configured file handler
        aggregate_errors: Initialize the global error aggregator
    """
    config = config or load_logging_config()
    level_name = config.verbose_level if verbose else config.default_level
    level = getattr(logging, level_name.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    sensitive_filter = SensitiveDataFilter(
        set(config.sensitive_data.global_fields),
        config.sensitive_data.mask_pattern
    ) if config.sensitive_data.enabled else None

    if config.console.enabled:
        console_handler = get_console_handler(ColoredFormatter(use_color=config.console.color))
        console_handler.setLevel(level)
        console_handler.addFilter(CorrelationFilter())
        if sensitive_filter:
            console_handler.addFilter(sensitive_filter)
        root_logger.addHandler(console_handler)

    file_path = log_file or (config.file.path if config.file.enabled else None)
    if file_path:
        if config.file.format == 'json':
            formatter: logging.Formatter = JsonFormatter(include_timestamp=config.file.include_timestamp)
        else:
            formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        file_handler = get_file_handler(
            file_path,
            formatter,
            config.file.max_size_mb * 1024 * 1024,
            config.file.backup_count
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(CorrelationFilter())
        if sensitive_filter:
            file_handler.addFilter(sensitive_filter)
        root_logger.addHandler(file_handler)

    for library, library_level in config.libraries.items():
        logging.getLogger(library).setLevel(getattr(logging, library_level.upper(), logging.WARNING))

    if aggregate_errors:
        init_error_aggregator(config.error_aggregation)
