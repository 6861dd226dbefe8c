"""Custom exception classes for the pagination engine."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    All engine errors inherit from this class so collaborators can map them
    to a client-facing response in one place. Follows RFC 7807 Problem
    Details for HTTP APIs.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        instance: URI reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.

    Example:
            raise AppException(
            status_code=400,
            detail="Cursor is not valid",
            type="malformed-cursor",
            extra={"cursor": "!!!"}
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            status_code: HTTP status code.
            detail: Human-readable error message.
            type: Error type identifier.
            title: Short summary of the problem type.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title for HTTP status code.

        Args:
            status_code: HTTP status code.

        Returns:
            Human-readable title for the status code.
        """
        titles = {
            400: "Bad Request",
            404: "Not Found",
            422: "Unprocessable Entity",
            500: "Internal Server Error",
        }
        return titles.get(status_code, "Error")


class NotFoundException(AppException):
    """Exception raised when a record is not found.

    Example:
            raise NotFoundException(
            detail="Record with ID 42 not found",
            extra={"id": "42"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "not-found",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=404,
            detail=detail,
            type=type,
            title="Not Found",
            instance=instance,
            extra=extra,
        )


class ValidationException(AppException):
    """Exception raised for invalid filter, sort or page input.

    Raised for unknown filter fields and malformed leaves when the filter
    engine runs in strict mode, and for unknown operators regardless of mode.

    Example:
            raise ValidationException(
            detail="Unknown filter field 'colour'",
            extra={"field": "colour"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "validation-error",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=422,
            detail=detail,
            type=type,
            title="Validation Error",
            instance=instance,
            extra=extra,
        )


class MalformedCursorException(AppException):
    """Exception raised when a cursor token cannot be decoded.

    This is a client error: the caller sent a token the engine never issued
    or one that was corrupted in transit.
    """

    def __init__(
        self,
        detail: str = "Invalid or expired cursor",
        type: str = "malformed-cursor",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=400,
            detail=detail,
            type=type,
            title="Malformed Cursor",
            instance=instance,
            extra=extra,
        )


class UnsupportedOperatorException(AppException):
    """Exception raised when an operator does not apply to a field's type.

    Only raised by the filter engine in strict mode; lenient evaluation
    fails the predicate instead.
    """

    def __init__(
        self,
        field: str,
        operator: str,
        value_type: str,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        context = {"field": field, "operator": operator, "value_type": value_type}
        if extra:
            context.update(extra)
        super().__init__(
            status_code=422,
            detail=f"Operator '{operator}' is not supported for field '{field}' of type {value_type}",
            type="unsupported-operator",
            title="Unsupported Operator",
            instance=instance,
            extra=context,
        )


class PageSizeOutOfRangeException(AppException):
    """Exception raised for a page size outside the allowed range.

    Only raised when page size clamping is disabled in settings.
    """

    def __init__(
        self,
        page_size: int,
        max_page_size: int,
        instance: str | None = None,
    ) -> None:
        super().__init__(
            status_code=400,
            detail=f"Page size must be between 1 and {max_page_size}, got {page_size}",
            type="page-size-out-of-range",
            title="Page Size Out Of Range",
            instance=instance,
            extra={"page_size": page_size, "max_page_size": max_page_size},
        )


__all__ = [
    "AppException",
    "MalformedCursorException",
    "NotFoundException",
    "PageSizeOutOfRangeException",
    "UnsupportedOperatorException",
    "ValidationException",
]
