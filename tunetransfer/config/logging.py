"""Logging configuration and utilities using Loguru.

This module provides centralized logging setup for tunetransfer, including
structured logging with Loguru and an error handling decorator for calls that
cross a service boundary.

Public API:
----------
setup_loguru_logger(settings: Settings, verbose: bool = False) -> None
    Configure Loguru sinks for the application

get_logger(name: str) -> Logger
    Get a context-aware logger for your module
    Usage: logger = get_logger(__name__)

log_startup_info(settings: Settings) -> None
    Log the active configuration once at startup

@resilient_operation(operation_name: str)
    Decorator for handling errors in external API calls
    Usage: @resilient_operation("spotify_list_playlists")
"""

from collections.abc import Awaitable, Callable
import functools
from pathlib import Path
import sys
from typing import Any, ParamSpec, TypeVar

from loguru import logger

from tunetransfer.config.settings import Settings

# Never log these settings values
_SECRET_KEYS = {"spotify_client_secret"}


def setup_loguru_logger(settings: Settings, verbose: bool = False) -> None:
    """Configure Loguru logger for the application.

    Args:
        settings: Application settings holding levels and the log file path
        verbose: Enable debug level and detailed tracebacks on the console
    """
    logger.remove()

    log_file_path = Path(settings.logging.log_file)
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    logger.configure(extra={"service": "tunetransfer", "module": "root"})

    console_level = "DEBUG" if verbose else settings.logging.console_level
    logger.add(
        sink=sys.stderr,
        level=console_level,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:"
            "<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=verbose,
        diagnose=verbose,
    )

    # Structured JSON file sink; enqueue unless real-time debugging is wanted
    logger.add(
        sink=str(log_file_path),
        level=settings.logging.file_level,
        rotation="10 MB",
        retention="1 week",
        compression="zip",
        backtrace=True,
        diagnose=False,
        enqueue=not settings.logging.real_time_debug,
        catch=True,
        serialize=True,
    )


def get_logger(name: str) -> Any:  # Loguru's bound logger has no public type
    """Get a pre-configured logger instance for the given module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Loguru logger bound with module and service context
    """
    return logger.bind(module=name, service="tunetransfer")


def log_startup_info(settings: Settings) -> None:
    """Log the active configuration at debug level, hiding secrets."""
    local_logger = get_logger(__name__)
    local_logger.info("tunetransfer starting")

    for section_name, section_values in settings.model_dump().items():
        if not isinstance(section_values, dict):
            local_logger.debug("  {}: {}", section_name.upper(), str(section_values))
            continue
        local_logger.debug("  {}:", section_name.upper())
        for key, value in section_values.items():
            if key in _SECRET_KEYS and value:
                value = "********"
            local_logger.debug("    {}: {}", key.upper(), str(value))


P = ParamSpec("P")
R = TypeVar("R")


def resilient_operation(
    operation_name: str | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator for service boundary operations with standardized error logging.

    Failures are logged once with the operation name and re-raised unchanged,
    so callers keep full control over the error taxonomy.

    Example:
        >>> @resilient_operation("spotify_list_playlists")
        >>> async def list_playlists(self, offset: int) -> Page: ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        op_name = operation_name or func.__name__

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.bind(operation=op_name).error(
                    f"Error in {op_name}: {e!s}", error_type=type(e).__name__
                )
                raise

        return wrapper

    return decorator
