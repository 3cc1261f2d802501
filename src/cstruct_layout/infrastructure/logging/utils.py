#!/usr/bin/env python3

"""Logging helpers shared by the analysis modules."""

import logging
from collections.abc import Callable
from functools import wraps
from time import perf_counter
from typing import Any, TypeVar, cast

F = TypeVar("F", bound=Callable[..., Any])


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass ``__name__``."""
    return logging.getLogger(name)


def _elapsed_ms(start: float) -> float:
    return (perf_counter() - start) * 1000


def log_timing(func: F) -> F:
    """
    Decorator logging how long an analysis step took.

    Durations are reported in milliseconds at DEBUG level. A step that raises
    is logged as an error and the exception propagates unchanged.

    Args:
        func: Function to decorate

    Returns:
        Wrapped function
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        logger = get_logger(func.__module__)
        step = func.__qualname__
        start = perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(f"{step} failed after {_elapsed_ms(start):.2f}ms: {e}")
            raise
        logger.debug(f"{step} finished in {_elapsed_ms(start):.2f}ms")
        return result

    return cast("F", wrapper)
