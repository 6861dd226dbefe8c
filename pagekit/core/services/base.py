"""Base service class for query services."""

from __future__ import annotations

import logging

from pagekit.infra.logging import get_lazy_logger


class BaseService:
    """Base class for services built on the pagination engine.

    Loggers:
        - self.logger: Standard logger for INFO/WARNING/ERROR
        - self._lazy: Lazy logger for DEBUG (callables only evaluated when enabled)

    Example:
        class RecordService(BaseService):
            def list(self, request):
                self.logger.info("Listing records", extra={"page_size": request.page_size})
                self._lazy.debug(lambda: f"Request: {request.model_dump()}")
    """

    def __init__(self) -> None:
        class_name = self.__class__.__name__
        self.logger = logging.getLogger(class_name)
        self._lazy = get_lazy_logger(class_name)


__all__ = ["BaseService"]
