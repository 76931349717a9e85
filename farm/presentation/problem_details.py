"""RFC 7807 Problem Details for API error responses."""

from typing import Any, Final

from fastapi import status
from pydantic import BaseModel, Field

PROBLEM_TYPE_BASE: Final = "https://farm.example.com/problems"


class ErrorCodes:
    """Stable machine-readable error codes."""

    VALIDATION_FAILED: Final = "validation_failed"
    FIELD_REQUIRED: Final = "field_required"
    FIELD_TOO_LONG: Final = "field_too_long"
    FIELD_INVALID_FORMAT: Final = "field_invalid_format"
    FIELD_INVALID_VALUE: Final = "field_invalid_value"
    RESOURCE_NOT_FOUND: Final = "resource_not_found"
    CAPACITY_EXCEEDED: Final = "capacity_exceeded"
    INTERNAL_ERROR: Final = "internal_error"


class ProblemDetail(BaseModel):
    """Base problem details document."""

    type: str = Field(description="URI identifying the problem type")
    title: str = Field(description="Short, human-readable summary")
    status: int = Field(description="HTTP status code")
    detail: str | None = Field(default=None, description="Explanation of this case")
    instance: str | None = Field(default=None, description="Request path")
    code: str | None = Field(default=None, description="Machine-readable error code")


class ValidationProblemDetail(ProblemDetail):
    errors: list[dict[str, Any]] | None = Field(
        default=None, description="Field-level validation errors"
    )


class NotFoundProblemDetail(ProblemDetail):
    resource_type: str | None = Field(default=None, description="Missing entity type")
    resource_id: int | None = Field(default=None, description="Missing entity id")


class ProblemDetailFactory:
    """Builds the problem documents the API returns."""

    @staticmethod
    def validation_failed(
        detail: str,
        instance: str | None = None,
        field_errors: list[dict[str, Any]] | None = None,
    ) -> ValidationProblemDetail:
        return ValidationProblemDetail(
            type=f"{PROBLEM_TYPE_BASE}/validation-failed",
            title="Validation Failed",
            status=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            instance=instance,
            code=ErrorCodes.VALIDATION_FAILED,
            errors=field_errors,
        )

    @staticmethod
    def resource_not_found(
        resource_type: str,
        resource_id: int,
        detail: str | None = None,
        instance: str | None = None,
    ) -> NotFoundProblemDetail:
        return NotFoundProblemDetail(
            type=f"{PROBLEM_TYPE_BASE}/resource-not-found",
            title="Resource Not Found",
            status=status.HTTP_404_NOT_FOUND,
            detail=detail or f"{resource_type.title()} {resource_id} not found",
            instance=instance,
            code=ErrorCodes.RESOURCE_NOT_FOUND,
            resource_type=resource_type,
            resource_id=resource_id,
        )

    @staticmethod
    def internal_server_error(
        detail: str = "An unexpected error occurred. Please try again.",
        instance: str | None = None,
        code: str = ErrorCodes.INTERNAL_ERROR,
    ) -> ProblemDetail:
        return ProblemDetail(
            type=f"{PROBLEM_TYPE_BASE}/internal-error",
            title="Internal Server Error",
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            instance=instance,
            code=code,
        )
