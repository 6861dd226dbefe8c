"""Logging infrastructure.

Basic usage:
    import logging

    from pagekit.infra.logging import setup_logging

    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Paginating", extra={"page_size": 20})
"""

from __future__ import annotations

from .config import configure_logging, reset_logging_state, setup_logging
from .formatters import JSONFormatter
from .lazy import LazyLoggerAdapter, get_lazy_logger

__all__ = [
    "JSONFormatter",
    "LazyLoggerAdapter",
    "configure_logging",
    "get_lazy_logger",
    "reset_logging_state",
    "setup_logging",
]
