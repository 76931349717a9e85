import socket
from contextlib import asynccontextmanager
from typing import Final

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .domain.exceptions import DomainError
from .infrastructure.database.database import get_main_engine, init_db
from .logging_config import get_logger, setup_logging
from .logging_utils import log_system_info
from .middleware import log_requests_middleware
from .presentation.api_routes import api_router
from .presentation.error_handlers import (
    handle_domain_error,
    handle_validation_error,
    problem_response,
)
from .presentation.problem_details import ProblemDetailFactory
from .telemetry import setup_telemetry


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging()
    logger = get_logger(__name__)

    init_db(get_main_engine())
    logger.info("Database initialized", barn_capacity=settings.barn_capacity)

    hostname = socket.gethostname()
    try:
        ip_addr = socket.gethostbyname(hostname)
    except OSError:
        ip_addr = "unknown"
    log_system_info(hostname, ip_addr, settings.debug, settings.barn_capacity)

    yield

    logger.info("Application shutdown completed")


app: Final = FastAPI(
    title=settings.app_name,
    version=settings.version,
    lifespan=lifespan,
    description="""
**Farm** - keeps animals in barns by favorite color.

Every barn holds animals of a single color and at most a fixed number of them
(20 by default). Adding an animal puts it in the emptiest barn of its color,
building a new barn and spreading the color evenly when every barn is full.
Removing animals nudges uneven barns back into balance and tears down a barn
once its animals fit evenly into the others.
    """.strip(),
    openapi_tags=[
        {"name": "animals", "description": "Add, remove and list animals"},
        {"name": "barns", "description": "Inspect barns and their occupancy"},
    ],
)

setup_telemetry(app)

app.middleware("http")(log_requests_middleware)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Global handler for domain-specific errors."""
    logger = get_logger(__name__)
    logger.warning(
        "Domain error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
    )
    return handle_domain_error(exc, request)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Global handler for validation errors."""
    logger = get_logger(__name__)
    logger.warning(
        "Validation error occurred",
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
    )
    return handle_validation_error(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Global handler for Pydantic validation errors."""
    logger = get_logger(__name__)
    logger.warning(
        "Request validation error occurred",
        errors=exc.errors(),
        path=request.url.path,
        method=request.method,
    )

    field_errors = []
    for error in exc.errors():
        field_name = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        field_errors.append(
            {
                "field": field_name or "unknown",
                "code": error["type"],
                "message": error["msg"],
            }
        )

    return problem_response(
        ProblemDetailFactory.validation_failed(
            detail="Request validation failed",
            instance=str(request.url.path),
            field_errors=field_errors,
        )
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Global handler for database errors."""
    logger = get_logger(__name__)
    logger.error(
        "Database error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    return problem_response(
        ProblemDetailFactory.internal_server_error(
            detail="A database error occurred. No changes were saved.",
            instance=str(request.url.path),
        )
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Global handler for unexpected errors."""
    logger = get_logger(__name__)
    logger.error(
        "Unexpected error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    return problem_response(
        ProblemDetailFactory.internal_server_error(instance=str(request.url.path))
    )


app.include_router(api_router)
