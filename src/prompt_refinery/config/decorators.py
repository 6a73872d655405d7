"""Logging and timing decorators.

Provides ``log_call`` and ``timed``; both wrap plain functions and
coroutine functions.
"""

import functools
import inspect
import logging
import time
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")


def log_call(
    logger_name: Optional[str] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to log function calls with structured data.

    Args:
        logger_name: Optional logger name (defaults to function module)
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        log = logging.getLogger(logger_name or func.__module__)

        def _before(args: tuple, kwargs: dict) -> None:
            log.debug(
                f"Calling {func.__name__}",
                extra={
                    "function": func.__name__,
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                },
            )

        def _after() -> None:
            log.debug(
                f"Completed {func.__name__}",
                extra={"function": func.__name__, "success": True},
            )

        def _failed(e: Exception) -> None:
            log.error(
                f"Error in {func.__name__}: {e}",
                extra={
                    "function": func.__name__,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                _before(args, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _failed(e)
                    raise
                _after()
                return result

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            _before(args, kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _failed(e)
                raise
            _after()
            return result

        return wrapper

    return decorator


def timed(
    metric_name: Optional[str] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to measure and log function execution time.

    Args:
        metric_name: Optional metric name (defaults to function name)
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = metric_name or func.__name__
        log = logging.getLogger(func.__module__)

        def _report(start: float, error: Optional[Exception] = None) -> None:
            extra: dict[str, Any] = {
                "metric": name,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                "success": error is None,
            }
            if error is not None:
                extra["error"] = str(error)
            log.debug(f"Timer: {name}", extra=extra)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _report(start, e)
                    raise
                _report(start)
                return result

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _report(start, e)
                raise
            _report(start)
            return result

        return wrapper

    return decorator
