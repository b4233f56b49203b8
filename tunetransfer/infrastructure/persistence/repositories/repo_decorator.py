"""Repository decorator for standardizing DB operations.

Wraps repository methods with:
- Structured trace logging with context and timing information
- Error classification by SQLAlchemy exception type
- Translation of every database failure into ``PersistenceError``

The decorator keeps the repositories free of repetitive try/except blocks
while guaranteeing callers only ever see the domain error taxonomy.
"""

from collections.abc import Callable, Coroutine
import functools
import inspect
import time
from typing import Any, ParamSpec, TypeVar

from sqlalchemy.exc import (
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError,
)

from tunetransfer.config import get_logger
from tunetransfer.domain.errors import PersistenceError

logger = get_logger(__name__)


P = ParamSpec("P")
T = TypeVar("T")


def db_operation(
    operation_name: str | None = None,
) -> Callable[
    [Callable[P, Coroutine[Any, Any, T]]], Callable[P, Coroutine[Any, Any, T]]
]:
    """Decorate repository methods with consistent logging and error handling.

    Args:
        operation_name: Optional name for the operation (defaults to function name)

    Example:
        @db_operation("upsert_user")
        async def upsert_user(self, provider: str, provider_user_id: str, ...) -> User:
            ...
    """

    def decorator(
        func: Callable[P, Coroutine[Any, Any, T]],
    ) -> Callable[P, Coroutine[Any, Any, T]]:
        func_name = operation_name or func.__name__

        if not inspect.iscoroutinefunction(func):
            raise TypeError(
                f"db_operation can only be used with async functions, but {func_name} is not async",
            )

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            start_time = time.perf_counter()
            repo_name = args[0].__class__.__name__ if args else "Repository"
            context = _build_log_context(kwargs)

            def elapsed_ms() -> float:
                return (time.perf_counter() - start_time) * 1000

            try:
                result = await func(*args, **kwargs)
            except PersistenceError:
                # Already classified by a nested operation
                raise
            except IntegrityError as e:
                logger.warning(
                    f"DB integrity error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed_ms(),
                    **context,
                )
                raise PersistenceError(
                    f"{repo_name}.{func_name} violated a constraint: {e.orig}"
                ) from e
            except (TimeoutError, OperationalError) as e:
                logger.error(
                    f"DB operational error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed_ms(),
                    **context,
                )
                raise PersistenceError(
                    f"{repo_name}.{func_name} failed: {e}"
                ) from e
            except SQLAlchemyError as e:
                logger.error(
                    f"SQLAlchemy error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed_ms(),
                    **context,
                )
                raise PersistenceError(
                    f"{repo_name}.{func_name} failed: {e}"
                ) from e

            logger.trace(
                f"DB operation completed: {repo_name}.{func_name}",
                operation=func_name,
                exec_time_ms=elapsed_ms(),
                **context,
            )
            return result

        return wrapper

    return decorator


def _build_log_context(kwargs: dict[str, Any]) -> dict[str, Any]:
    """Extract simple, loggable values from function kwargs."""
    return {
        k: v
        for k, v in kwargs.items()
        if not k.startswith("_") and isinstance(v, int | str | bool | float)
    }
