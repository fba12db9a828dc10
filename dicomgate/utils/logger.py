"""
Logging setup for dicomgate.

All gateway code logs through loguru; uvicorn, FastAPI and pynetdicom log
through the standard library and are routed into the same sinks.
"""

import inspect
import logging
import sys
from pathlib import Path

from loguru import logger as _logger

from ..settings import Settings, settings

LOG_FILE_NAME = "dicomgate.log"

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Standard-library loggers forwarded to loguru
FORWARDED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "pynetdicom")


class InterceptHandler(logging.Handler):
    """Forward standard library records to loguru, keeping the original caller."""

    def emit(self, record: logging.LogRecord) -> None:
        level: str | int
        try:
            level = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging-module frames so loguru reports the real call site
        frame, depth = inspect.currentframe(), 0
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        _logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(config: Settings) -> None:
    """
    Configure loguru sinks and stdlib forwarding from settings.

    pynetdicom logs every PDU at DEBUG; it is held at WARNING unless the
    gateway runs with ``debug`` enabled.

    Args:
        config: Settings providing level, format and file sink options
    """
    fmt = config.log_format or DEFAULT_FORMAT

    _logger.remove()
    _logger.add(
        sys.stderr, level=config.log_level, format=fmt, colorize=True, diagnose=config.debug
    )

    if config.log_to_file:
        log_path = Path(config.get_log_dir()) / LOG_FILE_NAME
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            str(log_path),
            level=config.log_level,
            format=fmt,
            rotation=config.log_rotation,
            retention=config.log_retention,
            compression="zip",
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in FORWARDED_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    logging.getLogger("pynetdicom").setLevel(logging.DEBUG if config.debug else logging.WARNING)


setup_logging(settings)

logger = _logger
