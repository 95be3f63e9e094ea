"""
Logging utilities for the court scheduling engine.
"""

import logging
import sys
import time as _time
import traceback
from collections.abc import Callable
from datetime import date, datetime, time
from decimal import Decimal
from functools import wraps
from inspect import signature
from types import TracebackType
from typing import Any
from typing import TypeVar

from typing_extensions import ParamSpec

from courtsched.exceptions import SchedulingError


T = TypeVar('T')
P = ParamSpec('P')

def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)

def _describe(value: Any) -> str:
    """Compact rendering of a call argument for log lines."""
    if isinstance(value, datetime):
        return value.isoformat(timespec='minutes')
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime('%H:%M')
    if isinstance(value, Decimal):
        return str(value)
    return repr(value)

def log_execution(level: str = 'DEBUG', include_args: bool = False) -> Callable[
    [Callable[P, T]], Callable[P, T]
]:
    """Decorator logging a call, its duration and how it ended.

    Scheduling errors are outcomes the caller handles, so they are logged at
    ``level``; anything else is logged as an error with its traceback.
    """
    log_level = getattr(logging, level)

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        logger = logging.getLogger(func.__module__)
        sig = signature(func)

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            if include_args:
                bound = sig.bind(*args, **kwargs)
                shown = ", ".join(
                    f"{name}={_describe(value)}"
                    for name, value in bound.arguments.items() if name != 'self'
                )
                logger.log(log_level, f"Calling {func.__name__}({shown})")
            else:
                logger.log(log_level, f"Calling {func.__name__}")

            started = _time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = _time.perf_counter() - started
                if isinstance(e, SchedulingError):
                    logger.log(log_level, f"{func.__name__} failed after {elapsed:.3f}s: {e!s}")
                else:
                    logger.error(f"{func.__name__} crashed after {elapsed:.3f}s: {e!s}", exc_info=True)
                raise
            logger.log(log_level, f"{func.__name__} completed in {_time.perf_counter() - started:.3f}s")
            return result

        return wrapper
    return decorator

def _exception_fields(exc_info: Any) -> dict[str, str]:
    """Error text and traceback for ``exc_info`` (``True`` or an exception)."""
    if isinstance(exc_info, BaseException):
        exc_value: BaseException | None = exc_info
        tb: TracebackType | None = exc_info.__traceback__
    elif exc_info is True:
        _, exc_value, tb = sys.exc_info()
    else:
        return {}

    fields = {}
    if exc_value is not None:
        fields['error'] = str(exc_value)
    if tb is not None:
        fields['traceback'] = "".join(traceback.format_tb(tb))
    return fields

class EnhancedLoggerMixin:
    """Mixin giving a class a module logger plus persistent key=value context.

    Context set with :meth:`set_log_context` is appended to every message,
    followed by the keyword arguments of the individual call.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger(self.__class__.__module__)
        self._log_context: dict[str, Any] = {}

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def set_log_context(self, **kwargs: Any) -> None:
        self._log_context.update(kwargs)

    def clear_log_context(self) -> None:
        self._log_context.clear()

    def _format_message(self, msg: str, **kwargs: Any) -> str:
        context = {**self._log_context, **kwargs}
        if not context:
            return msg
        return f"{msg} | Context: " + " | ".join(f"{k}={v}" for k, v in context.items())

    def debug(self, msg: str, **kwargs: Any) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(self._format_message(msg, **kwargs))

    def info(self, msg: str, **kwargs: Any) -> None:
        self.logger.info(self._format_message(msg, **kwargs))

    def warning(self, msg: str, **kwargs: Any) -> None:
        self.logger.warning(self._format_message(msg, **kwargs))

    def error(self, msg: str, exc_info: Any = None, **kwargs: Any) -> None:
        """Log an error; ``exc_info`` adds the error text and traceback as context."""
        kwargs.update(_exception_fields(exc_info))
        self.logger.error(self._format_message(msg, **kwargs))

class LoggerMixin(EnhancedLoggerMixin):
    """Plain mixin name used by models and builders."""
    pass
