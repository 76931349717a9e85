import logging
from pathlib import Path

import structlog
from opentelemetry import trace
from rich.logging import RichHandler

from .config import settings

_LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
_QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.dialects": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "uvicorn": logging.INFO,
}


def setup_logging(log_level: str | None = None) -> None:
    """Configure stdlib and structlog logging for the farm service.

    Args:
        log_level: Override the level derived from ``settings.debug``
    """
    if log_level:
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        level = logging.DEBUG if settings.debug else logging.INFO

    formatter = logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    # Rich handles colouring; the formatter supplies the timestamp
    console_handler = RichHandler(
        rich_tracebacks=True,
        show_path=settings.debug,
        show_time=False,
    )
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if not settings.debug or settings.log_to_file:
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)

        file_handler = logging.FileHandler(log_dir / "farm.log", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(level)

    for name, logger_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(logger_level)

    _configure_structlog(level)

    get_logger(__name__).info(
        "Logging configured", level=logging.getLevelName(level)
    )


def _add_trace_context(logger, method_name, event_dict):
    """Attach the current OpenTelemetry trace and span ids, if any."""
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        span_context = current_span.get_span_context()
        if span_context.is_valid:
            event_dict["trace_id"] = f"0x{format(span_context.trace_id, '032x')}"
            event_dict["span_id"] = f"0x{format(span_context.span_id, '016x')}"
    return event_dict


def _configure_structlog(level: int) -> None:
    """Render structlog events directly, pretty in debug and JSON otherwise."""
    renderer = (
        structlog.dev.ConsoleRenderer(colors=False)
        if settings.debug
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _add_trace_context,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        logger_factory=structlog.WriteLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(max(level, logging.INFO)),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    """Get a logger with the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)
