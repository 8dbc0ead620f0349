import logging
import sys
import traceback
from typing import Any, Dict, Optional

from rentory.core.logging.filters import get_log_context

logger = logging.getLogger(__name__)


def setup_exception_logging() -> None:
    """
    Install an exception hook that logs uncaught exceptions, with the current
    log context, before the process terminates.
    """
    original_excepthook = sys.excepthook

    def handle_uncaught_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, (KeyboardInterrupt, SystemExit)):
            original_excepthook(exc_type, exc_value, exc_traceback)
            return

        logger.critical(
            "Uncaught exception: %s - %s",
            exc_type.__name__,
            str(exc_value),
            exc_info=(exc_type, exc_value, exc_traceback),
            extra={
                "event_type": "uncaught_exception",
                "exception_type": exc_type.__name__,
                "exception_message": str(exc_value),
                "traceback_lines": traceback.format_exception(exc_type, exc_value, exc_traceback),
                **get_log_context(),
            },
        )

        original_excepthook(exc_type, exc_value, exc_traceback)

    sys.excepthook = handle_uncaught_exception


def log_exception_with_context(
    exc: Exception,
    message: str = "Exception occurred",
    level: int = logging.ERROR,
    extra_context: Optional[Dict[str, Any]] = None,
    target: Optional[logging.Logger] = None,
) -> None:
    """
    Log an exception with the current log context and additional information.

    Args:
        exc: The exception to log
        message: Custom message to include with the log
        level: Logging level to use
        extra_context: Additional context to include in the log
        target: Logger to emit on (defaults to this module's logger)
    """
    log_extra = {
        "event_type": "exception_logged",
        "exception_type": type(exc).__name__,
        "exception_message": str(exc),
        **get_log_context(),
        **(extra_context or {}),
    }

    (target or logger).log(
        level,
        "%s: %s - %s",
        message,
        type(exc).__name__,
        str(exc),
        exc_info=exc,
        extra=log_extra,
    )
