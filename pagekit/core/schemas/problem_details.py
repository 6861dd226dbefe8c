"""RFC 7807 Problem Details schema for error responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProblemDetails(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    See: https://datatracker.ietf.org/doc/html/rfc7807

    Example:
        return JSONResponse(
            status_code=400,
            content=ProblemDetails(
                type="malformed-cursor",
                title="Malformed Cursor",
                status=400,
                detail="Invalid or expired cursor",
                instance="/api/v1/records?cursor=!!!",
            ).model_dump(exclude_none=True),
        )
    """

    type: str = Field(
        default="about:blank",
        min_length=1,
        max_length=200,
        description="URI reference identifying the problem type",
    )
    title: str = Field(
        min_length=1, max_length=200, description="Short, human-readable summary of the problem"
    )
    status: int = Field(ge=100, le=599, description="HTTP status code")
    detail: str | None = Field(
        default=None,
        max_length=2000,
        description="Human-readable explanation specific to this occurrence",
    )
    instance: str | None = Field(
        default=None,
        max_length=500,
        description="URI reference identifying the specific occurrence",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "unsupported-operator",
                "title": "Unsupported Operator",
                "status": 422,
                "detail": "Operator 'gt' is not supported for field 'active' of type bool",
                "instance": "/api/v1/records",
            }
        },
        str_strip_whitespace=True,
    )


class FieldError(BaseModel):
    """A single request field that failed validation."""

    field: str = Field(description="Dotted location of the field")
    message: str = Field(description="Validation message")
    type: str = Field(description="Validation error type")
    value: Any | None = Field(default=None, description="Rejected input")


class ValidationProblemDetails(ProblemDetails):
    errors: list[FieldError] = Field(default_factory=list, description="Per-field errors")


__all__ = ["FieldError", "ProblemDetails", "ValidationProblemDetails"]
