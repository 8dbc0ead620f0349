"""
Structured logging for the Rentory inventory core.

This module provides:
- JSON log records through python-json-logger formatters
- Contextual enrichment (operation ids, product and reservation line ids)
- Environment-specific configurations, optionally overridden by YAML files
- Exception logging helpers

Usage:
    from rentory.core.logging import setup_logging, get_logger, add_to_log_context

    setup_logging()

    logger = get_logger(__name__)

    with add_to_log_context(product_id="gid://rentory/Product/...", actor="alice"):
        logger.info("Allocating capacity")
"""

from .config import get_logger, setup_logging
from .exceptions import log_exception_with_context, setup_exception_logging
from .filters import add_to_log_context, clear_log_context, get_log_context

__all__ = [
    "setup_logging",
    "setup_exception_logging",
    "get_logger",
    "add_to_log_context",
    "get_log_context",
    "clear_log_context",
    "log_exception_with_context",
]
