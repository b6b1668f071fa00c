"""
Centralized Logging Configuration for the Talent Match API
"""
import functools
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Any

FORMATS = {
    "simple": "%(levelname)s - %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(name)-30s | %(funcName)-20s:%(lineno)-4d | %(message)s",
    "json": '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "function": "%(funcName)s", "line": %(lineno)d, "message": "%(message)s"}',
}

# ENVIRONMENT -> (level, file logging, format); level None means LOG_LEVEL
ENVIRONMENT_PRESETS = {
    "production": (None, True, "detailed"),
    "development": ("DEBUG", True, "detailed"),
    "testing": ("WARNING", False, "simple"),
}


def setup_logging(
    level: str = "INFO",
    log_file: str = None,
    enable_console: bool = True,
    enable_file: bool = True,
    format_style: str = "detailed"
) -> None:
    """
    Setup centralized logging configuration

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (defaults to logs/talent_match_<date>.log)
        enable_console: Enable console logging
        enable_file: Enable file logging
        format_style: Format style ('simple', 'detailed', 'json'); files always
            use it too unless it is 'simple'
    """
    if format_style not in FORMATS:
        raise ValueError(f"Unknown log format '{format_style}', expected one of {sorted(FORMATS)}")

    log_dir = Path("logs")
    if enable_file:
        log_dir.mkdir(exist_ok=True)

    if log_file is None:
        log_file = log_dir / f"talent_match_{datetime.now().strftime('%Y%m%d')}.log"

    file_format = "detailed" if format_style == "simple" else format_style

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": FORMATS[format_style], "datefmt": "%Y-%m-%d %H:%M:%S"},
            "file": {"format": FORMATS[file_format], "datefmt": "%Y-%m-%d %H:%M:%S"},
        },
        "handlers": {},
        "loggers": {
            "": {"level": level, "handlers": [], "propagate": False},
            "uvicorn": {"level": "INFO", "handlers": [], "propagate": False},
        },
    }
    root_handlers = config["loggers"][""]["handlers"]
    uvicorn_handlers = config["loggers"]["uvicorn"]["handlers"]

    if enable_console:
        config["handlers"]["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "console",
            "stream": "ext://sys.stdout"
        }
        root_handlers.append("console")
        uvicorn_handlers.append("console")

    if enable_file:
        rotating = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "file",
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "encoding": "utf8"
        }
        config["handlers"]["file"] = {**rotating, "level": level, "filename": str(log_file)}
        root_handlers.append("file")
        uvicorn_handlers.append("file")

        # Errors and above also go to their own file
        error_log_file = log_dir / f"talent_match_errors_{datetime.now().strftime('%Y%m%d')}.log"
        config["handlers"]["error_file"] = {**rotating, "level": "ERROR", "filename": str(error_log_file)}
        root_handlers.append("error_file")

    logging.config.dictConfig(config)

    logger = get_logger("logging")
    logger.info(f"Logging configured - Level: {level}, Format: {format_style}, File: {enable_file}")
    if enable_file:
        logger.info(f"Log file: {log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with consistent naming

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(f"talent_match.{name}")


def log_function_call(func):
    """Decorator for async service functions: logs entry, exit and execution time"""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.time()

        logger.debug(f"Entering {func.__name__} with args={len(args)}, kwargs={list(kwargs.keys())}")

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Error in {func.__name__} after {time.time() - start_time:.3f}s: {e}")
            raise

        logger.debug(f"Completed {func.__name__} in {time.time() - start_time:.3f}s")
        return result

    return wrapper


def configure_for_environment():
    """
    Configure logging from ENVIRONMENT (production, development, testing),
    LOG_LEVEL and LOG_FORMAT. LOG_FORMAT overrides the preset's format.
    """
    environment = os.getenv("ENVIRONMENT", "development").lower()
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    level, enable_file, format_style = ENVIRONMENT_PRESETS.get(environment, (None, True, "detailed"))
    format_style = os.getenv("LOG_FORMAT", format_style).lower()

    setup_logging(
        level=level or log_level,
        enable_console=True,
        enable_file=enable_file,
        format_style=format_style,
    )


class PerformanceMonitor:
    """Context manager for monitoring performance with logging"""

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.start_time = None
        self.elapsed_ms = None

    def __enter__(self):
        self.start_time = time.time()
        self.logger.debug(f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.time() - self.start_time) * 1000

        if exc_type is not None:
            self.logger.error(f"{self.operation_name} failed after {self.elapsed_ms:.2f}ms: {exc_val}")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms (exceeded threshold {self.threshold_ms}ms)")
        else:
            self.logger.info(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms")
