"""Root logger setup driven by the application config."""

import logging
import sys
from dataclasses import dataclass

from pythonjsonlogger.json import JsonFormatter

from src.config import AppConfig

QUIET_LOGGERS = ("httpx", "httpcore", "hpack", "supabase", "postgrest")


@dataclass
class LogSettings:
    """Knobs the masking and timing helpers read on every call."""
    mask_sensitive: bool = True
    slow_operation_threshold_ms: int = 1000


settings = LogSettings()


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter("%(timestamp)s %(levelname)s %(name)s %(message)s", timestamp=True)
    return logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def configure_logging(config: AppConfig) -> None:
    """Send every record to stdout at the configured level and format."""
    settings.mask_sensitive = config.log_mask_sensitive
    settings.slow_operation_threshold_ms = config.log_slow_operation_threshold_ms

    level = getattr(logging, config.log_level, logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    # stdout for serverless/Vercel
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(build_formatter(config.log_format))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
