"""Structured logging configuration for the TaskHub API."""

import copy
import logging
import logging.handlers
import sys
import time
from typing import Optional

from ..config import Settings


class ColoredFormatter(logging.Formatter):
    """Custom formatter with color support for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'        # Reset
    }

    def format(self, record):
        """Format log record with colors for console output."""
        # Other handlers share the record, so color a copy
        record = copy.copy(record)
        if record.levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}"
                f"{self.COLORS['RESET']}"
            )

        return super().format(record)


def setup_logging(settings: Settings) -> None:
    """Setup logging for the application.

    Args:
        settings: Application settings containing logging configuration
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers
    root_logger.handlers.clear()

    # Console handler with colors
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        ColoredFormatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    )
    root_logger.addHandler(console_handler)

    # Optional rotating file handler
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=settings.log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                fmt='%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        )
        root_logger.addHandler(file_handler)

    configure_module_loggers(settings)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level: {settings.log_level.upper()}")
    if settings.log_file is not None:
        logger.info(f"Log file: {settings.log_file.absolute()}")


def configure_module_loggers(settings: Settings) -> None:
    """Configure logging levels for specific modules.

    Args:
        settings: Application settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.getLogger('taskhub').setLevel(level)

    # Third-party library loggers (usually more verbose)
    third_party_loggers = {
        'uvicorn': logging.INFO,
        'uvicorn.access': logging.WARNING,
        'fastapi': logging.INFO,
        'aiosqlite': logging.WARNING,
    }

    for logger_name, logger_level in third_party_loggers.items():
        logging.getLogger(logger_name).setLevel(logger_level)

    # Suppress overly verbose loggers in production
    if settings.environment == "production":
        logging.getLogger('uvicorn.access').setLevel(logging.ERROR)


def configure_request_logging():
    """Build the request/response logging middleware for FastAPI."""
    from fastapi import Request

    async def log_requests(request: Request, call_next):
        """Middleware to log HTTP requests and responses."""
        logger = logging.getLogger("taskhub.middleware.requests")

        start_time = time.time()
        logger.info(
            f"Request started: {request.method} {request.url.path} "
            f"from {request.client.host if request.client else 'unknown'}"
        )

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"-> {response.status_code} in {process_time:.3f}s"
        )

        return response

    return log_requests


def log_startup_info(settings: Settings):
    """Log application startup information.

    Args:
        settings: Application settings
    """
    logger = logging.getLogger("taskhub.startup")

    logger.info("=" * 60)
    logger.info("TaskHub API Starting")
    logger.info("=" * 60)
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level.upper()}")
    logger.info(f"Database: {settings.database_path}")
    logger.info(f"Token algorithm: {settings.jwt_algorithm}")
    logger.info("=" * 60)


def log_shutdown_info():
    """Log application shutdown information."""
    logger = logging.getLogger("taskhub.shutdown")

    logger.info("=" * 60)
    logger.info("TaskHub API Shutting Down")
    logger.info("=" * 60)


def log_user_action(user_id: str, action: str, details: Optional[dict] = None):
    """Log user actions for auditing.

    Args:
        user_id: User identifier
        action: Action performed
        details: Additional action details
    """
    logger = logging.getLogger("taskhub.audit.user_actions")

    log_data = {"user_id": user_id, "action": action}
    if details:
        log_data.update(details)

    logger.info(f"User action: {log_data}")


__all__ = [
    'setup_logging',
    'configure_module_loggers',
    'configure_request_logging',
    'log_startup_info',
    'log_shutdown_info',
    'log_user_action',
]
