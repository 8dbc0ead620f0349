import contextvars
import logging
import os
import socket
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Optional

_log_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("log_context", default={})


class BaseContextFilter(logging.Filter):
    """
    Base filter that enriches log records instead of dropping them.

    Subclasses implement ``add_context``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        self.add_context(record)
        return True

    def add_context(self, record: logging.LogRecord) -> None:
        pass


class GlobalContextFilter(BaseContextFilter):
    """
    Filter that adds static, process-wide attributes to every record
    (hostname, process id, environment, application name and version).
    """

    def __init__(self, name: str = "") -> None:
        super().__init__(name)

        self.hostname = socket.gethostname()
        self.process_id = os.getpid()
        self.environment = os.getenv("ENVIRONMENT", "unknown")
        self.app_name = os.getenv("APP_NAME", "rentory")
        self.app_version = os.getenv("APP_VERSION", "0.1.0")

    def add_context(self, record: logging.LogRecord) -> None:
        record.hostname = self.hostname
        record.process_id = self.process_id
        record.environment = self.environment
        record.app_name = self.app_name
        record.app_version = self.app_version


class DynamicContextFilter(BaseContextFilter):
    """
    Filter that copies the contextvar-backed log context onto the record.

    The allocation engine and the registries push ``product_id``,
    ``reservation_line_id``, ``instance_id`` and ``actor`` here so every
    record emitted during an operation can be correlated with ledger rows.
    """

    def add_context(self, record: logging.LogRecord) -> None:
        for key, value in _log_context.get().items():
            setattr(record, key, value)


class CombinedContextFilter(BaseContextFilter):
    """Applies global and dynamic enrichment in a single filter."""

    def __init__(self, name: str = "") -> None:
        super().__init__(name)

        self.global_filter = GlobalContextFilter(name)
        self.dynamic_filter = DynamicContextFilter(name)

    def add_context(self, record: logging.LogRecord) -> None:
        self.global_filter.add_context(record)
        self.dynamic_filter.add_context(record)


class NoiseReductionFilter(logging.Filter):
    """
    Filter for dropping high-volume, low-value records.

    Records are dropped when they come from a suppressed logger, fall below
    ``min_level`` or contain one of ``suppress_patterns``.
    """

    def __init__(
        self,
        name: str = "",
        suppress_patterns: Optional[list[str]] = None,
        suppress_loggers: Optional[list[str]] = None,
        min_level: Optional[int] = None,
    ) -> None:
        super().__init__(name)

        self.suppress_patterns = suppress_patterns or []
        self.suppress_loggers = suppress_loggers or []
        self.min_level = min_level

    def filter(self, record: logging.LogRecord) -> bool:
        if self.min_level and record.levelno < self.min_level:
            return False

        if record.name in self.suppress_loggers:
            return False

        message = record.getMessage()
        return not any(pattern in message for pattern in self.suppress_patterns)


class OperationIdFilter(BaseContextFilter):
    """
    Filter that guarantees every record carries an ``operation_id``.

    When no operation id was pushed to the context, one is generated and
    stored so later records of the same task share it.
    """

    def add_context(self, record: logging.LogRecord) -> None:
        context = _log_context.get()

        if "operation_id" not in context:
            operation_id = str(uuid.uuid4())
            _log_context.set({**context, "operation_id": operation_id})
            record.operation_id = operation_id
        else:
            record.operation_id = context["operation_id"]


@contextmanager
def add_to_log_context(**kwargs: Any):
    """
    Context manager for temporarily adding context to logs.

    Example:
        with add_to_log_context(product_id=product.id, actor="alice"):
            logger.info("Allocating capacity")  # Will include product_id and actor
    """
    token = _log_context.set({**_log_context.get(), **kwargs})

    try:
        yield
    finally:
        _log_context.reset(token)


def get_log_context() -> Dict[str, Any]:
    """Get the current logging context."""
    return _log_context.get()


def clear_log_context() -> None:
    """Reset the logging context to an empty state."""
    _log_context.set({})
