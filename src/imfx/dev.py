"""Development helpers: lightweight timing that reports through logging."""
from __future__ import annotations

from contextlib import contextmanager
import functools
import logging
import time
from typing import Any, Callable, Iterator, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@contextmanager
def timed(label: str) -> Iterator[None]:
    """
    Log the wall-clock duration of the enclosed block at DEBUG level.

    Args:
        label: Short description of the timed operation.
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_us = (time.perf_counter() - start) * 1e6
        logger.debug(f"{label}: {elapsed_us:.0f}µs")


def timer(func: F) -> F:
    """Decorator variant of :func:`timed` using the function's qualified name."""
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        with timed(func.__qualname__):
            return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
