"""Centralized error handling for the presentation layer."""

from fastapi import Request
from fastapi.responses import JSONResponse

from ..domain.exceptions import (
    CapacityInvariantViolation,
    DomainError,
    NotFoundError,
    ValidationError,
)
from .problem_details import (
    ErrorCodes,
    NotFoundProblemDetail,
    ProblemDetail,
    ProblemDetailFactory,
    ValidationProblemDetail,
)


def problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
    )


def handle_domain_error(error: DomainError, request: Request) -> JSONResponse:
    """Convert domain errors to RFC 7807 responses."""
    instance = str(request.url.path)
    problem: ProblemDetail | ValidationProblemDetail | NotFoundProblemDetail

    if isinstance(error, NotFoundError):
        problem = ProblemDetailFactory.resource_not_found(
            resource_type=error.entity_type,
            resource_id=error.entity_id,
            detail=str(error),
            instance=instance,
        )
    elif isinstance(error, ValidationError):
        problem = ProblemDetailFactory.validation_failed(
            detail=str(error),
            instance=instance,
            field_errors=_extract_field_errors(error),
        )
    elif isinstance(error, CapacityInvariantViolation):
        # internal invariant; the operation was rolled back
        problem = ProblemDetailFactory.internal_server_error(
            detail="The farm could not be rebalanced. No changes were saved.",
            instance=instance,
            code=ErrorCodes.CAPACITY_EXCEEDED,
        )
    else:
        problem = ProblemDetailFactory.internal_server_error(instance=instance)

    return problem_response(problem)


def handle_validation_error(error: ValueError, request: Request) -> JSONResponse:
    """Convert plain ValueErrors to validation problems."""
    problem = ProblemDetailFactory.validation_failed(
        detail=str(error) or "Please check your input and try again.",
        instance=str(request.url.path),
    )
    return problem_response(problem)


def _extract_field_errors(error: ValidationError) -> list[dict[str, str]]:
    """Extract field-specific errors from ValidationError."""
    errors = []
    error_msg = str(error).lower()

    if "name" in error_msg:
        if "empty" in error_msg:
            errors.append(
                {
                    "field": "name",
                    "code": ErrorCodes.FIELD_REQUIRED,
                    "message": "Name is required",
                }
            )
        elif "longer" in error_msg:
            errors.append(
                {
                    "field": "name",
                    "code": ErrorCodes.FIELD_TOO_LONG,
                    "message": "Name is too long",
                }
            )
        elif "control characters" in error_msg:
            errors.append(
                {
                    "field": "name",
                    "code": ErrorCodes.FIELD_INVALID_FORMAT,
                    "message": "Name contains invalid characters",
                }
            )

    if "color" in error_msg:
        errors.append(
            {
                "field": "favorite_color",
                "code": ErrorCodes.FIELD_INVALID_VALUE,
                "message": "Unknown favorite color",
            }
        )

    return errors
