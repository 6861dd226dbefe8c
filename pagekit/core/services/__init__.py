"""Service base classes."""

from pagekit.core.services.base import BaseService

__all__ = ["BaseService"]
