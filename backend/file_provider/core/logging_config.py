"""
Logging Configuration
=====================
Centralized logging setup using loguru for structured logging.

Features:
- Structured JSON logging for production
- Human-readable logs for development
- Log rotation and retention
- Standard library logging (boto3, aioboto3) routed through loguru
"""

import sys
import logging
from pathlib import Path
from typing import Optional

from loguru import logger

from file_provider.core.config import settings


# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

# Third-party loggers that are chatty at DEBUG level
INTERCEPTED_LOGGERS = ("boto3", "botocore", "aiobotocore", "aioboto3", "PIL")


class InterceptHandler(logging.Handler):
    """
    Intercept standard logging messages and redirect to loguru.

    Captures logs from the AWS SDK and Pillow so they share the
    application format.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """
        Emit a log record through loguru

        Args:
            record: Standard library log record
        """
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where the logged message originated
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging() -> None:
    """
    Configure package-wide logging

    Sets up:
    - Console logging (stdout)
    - File logging with rotation
    - JSON formatting for production
    - Intercepts standard library logging
    """
    # Remove default loguru handler
    logger.remove()

    # ========================================================================
    # CONSOLE LOGGING (stdout)
    # ========================================================================

    if settings.is_development:
        log_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )
        logger.add(
            sys.stdout,
            format=log_format,
            level="DEBUG" if settings.DEBUG else "INFO",
            colorize=True,
            backtrace=True,
            diagnose=True,
        )
    else:
        # Production: JSON format for log aggregation
        logger.add(
            sys.stdout,
            format="{message}",
            level="INFO",
            serialize=True,
            backtrace=False,
            diagnose=False,
        )

    # ========================================================================
    # FILE LOGGING (development only)
    # ========================================================================

    if settings.is_development:
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)

        logger.add(
            log_dir / "file_provider_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="7 days",
            compression="zip",
            level="DEBUG",
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{name}:{function}:{line} | "
                "{message}"
            ),
        )

    # ========================================================================
    # INTERCEPT STANDARD LIBRARY LOGGING
    # ========================================================================

    for name in INTERCEPTED_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False
        std_logger.setLevel(logging.INFO if settings.DEBUG else logging.WARNING)

    logger.info(f"Logging configured for {settings.ENVIRONMENT} environment")


def get_logger(name: Optional[str] = None) -> logger:
    """
    Get a logger instance

    Args:
        name: Optional logger name for context

    Returns:
        logger: Configured loguru logger
    """
    if name:
        return logger.bind(logger_name=name)
    return logger
