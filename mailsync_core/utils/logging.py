"""Logging utilities for consistent, context-rich logs across the system."""

import logging
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any, TypeVar, cast

# Type variable for decorator pattern
F = TypeVar("F", bound=Callable[..., Any])


class ContextLogger:
    """Logger wrapper that attaches context data to every log entry.

    Usage:
        logger = ContextLogger(__name__)
        logger.set_context(request_id='123', account_id=456)
        logger.info("Sync started")  # Will include the context automatically

        # Context scoped to a block:
        with logger.context(mailbox_id=7):
            logger.info("Syncing mailbox")

        # One-time context for a specific log:
        logger.info("Special operation", extra_context={'operation_id': 789})
    """

    def __init__(self, name: str):
        """Initialize with a standard logger name."""
        self.logger = logging.getLogger(name)
        self._context: dict[str, Any] = {}

    def set_context(self, **kwargs) -> None:
        """Set persistent context data for all subsequent log calls."""
        self._context.update(kwargs)

    def clear_context(self, *keys) -> None:
        """Clear specific keys from context, or all if no keys specified."""
        if not keys:
            self._context.clear()
        else:
            for key in keys:
                self._context.pop(key, None)

    @contextmanager
    def context(self, **kwargs) -> Iterator["ContextLogger"]:
        """Add context for the duration of a ``with`` block, then restore it."""
        previous = self._context.copy()
        self._context.update(kwargs)
        try:
            yield self
        finally:
            self._context = previous

    def get_context(self) -> dict[str, Any]:
        """Return a copy of the current persistent context."""
        return self._context.copy()

    def _log(
        self,
        level: int,
        msg: str,
        *args,
        extra_context: dict[str, Any] | None = None,
        **kwargs,
    ) -> None:
        """Internal method to enrich logs with context."""
        log_context = self._context.copy()
        if extra_context:
            log_context.update(extra_context)

        # Keys passed through ``extra`` are folded into the context too, so
        # callers can use either style.
        extra = kwargs.pop("extra", None) or {}
        log_context.update(extra)
        kwargs["extra"] = {"context": log_context}

        self.logger.log(level, msg, *args, **kwargs)

    def debug(
        self, msg: str, *args, extra_context: dict[str, Any] | None = None, **kwargs,
    ) -> None:
        """Log a debug message with context."""
        self._log(logging.DEBUG, msg, *args, extra_context=extra_context, **kwargs)

    def info(
        self, msg: str, *args, extra_context: dict[str, Any] | None = None, **kwargs,
    ) -> None:
        """Log an info message with context."""
        self._log(logging.INFO, msg, *args, extra_context=extra_context, **kwargs)

    def warning(
        self, msg: str, *args, extra_context: dict[str, Any] | None = None, **kwargs,
    ) -> None:
        """Log a warning message with context."""
        self._log(logging.WARNING, msg, *args, extra_context=extra_context, **kwargs)

    def error(
        self, msg: str, *args, extra_context: dict[str, Any] | None = None, **kwargs,
    ) -> None:
        """Log an error message with context."""
        self._log(logging.ERROR, msg, *args, extra_context=extra_context, **kwargs)

    def exception(
        self, msg: str, *args, extra_context: dict[str, Any] | None = None, **kwargs,
    ) -> None:
        """Log an error message with context and the active traceback."""
        self._log(
            logging.ERROR,
            msg,
            *args,
            extra_context=extra_context,
            exc_info=True,
            **kwargs,
        )


class ContextFilter(logging.Filter):
    """Render the ``context`` dict attached by ContextLogger as ``record.ctx``.

    Records emitted by plain loggers get an empty string so format strings
    using ``%(ctx)s`` never fail.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = getattr(record, "context", None) or {}
        record.ctx = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return True


def with_request_id(func: F) -> F:
    """Decorator to pass a unique ``_request_id`` to the wrapped function.

    Usage:
        @with_request_id
        def sync_account(trigger, _request_id=None):
            logger.set_context(request_id=_request_id)
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        # Keep an id supplied by the caller so retries share it
        if not kwargs.get("_request_id"):
            kwargs["_request_id"] = str(uuid.uuid4())
        return func(*args, **kwargs)

    return cast(F, wrapper)
