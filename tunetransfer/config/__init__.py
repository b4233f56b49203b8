"""Configuration module for tunetransfer.

Public API:
----------
Settings / load_settings()
    Pydantic settings object and the validated startup constructor

get_logger(name: str) -> Logger
    Get a context-aware logger for your module

setup_loguru_logger(settings, verbose: bool = False) -> None
    Configure Loguru logger for the application

resilient_operation(operation_name: str)
    Decorator for handling errors in external API calls

Usage:
------
```python
from tunetransfer.config import get_logger, load_settings

settings = load_settings()
logger = get_logger(__name__)
logger.info("Starting sync", concurrency=settings.sync.concurrency)
```
"""

from .logging import (
    get_logger,
    log_startup_info,
    resilient_operation,
    setup_loguru_logger,
)
from .settings import SPOTIFY_OAUTH_REDIRECT_PATH, Settings, load_settings

__all__ = [
    "SPOTIFY_OAUTH_REDIRECT_PATH",
    "Settings",
    "get_logger",
    "load_settings",
    "log_startup_info",
    "resilient_operation",
    "setup_loguru_logger",
]
