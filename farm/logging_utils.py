import logging
from typing import Any

from fastapi import Request


def log_api_request(request: Request, status_code: int, elapsed_ms: float) -> None:
    """Log one handled request; failed requests are logged as warnings.

    The exception handlers already log the error itself, so this only records
    the request line and its timing.
    """
    level = logging.WARNING if status_code >= 400 else logging.INFO
    logging.getLogger("api").log(
        level,
        f"{request.method} {request.url.path} - {status_code} ({elapsed_ms:.1f}ms)",
        extra={"status_code": status_code, "elapsed_ms": round(elapsed_ms, 2)},
    )


def log_database_operation(operation: str, table: str, **kwargs: Any) -> None:
    """Log a repository write at debug level.

    Args:
        operation: create, update, delete or delete_all
        table: Table name being written
        **kwargs: Ids and counts of the affected rows
    """
    logging.getLogger("database").debug(
        f"Database {operation} on {table}",
        extra={"operation": operation, "table": table, **kwargs},
    )


def log_system_info(
    hostname: str, ip_address: str, debug_mode: bool, barn_capacity: int
) -> None:
    logging.getLogger("system").info(
        f"Farm starting on {hostname} ({ip_address}), barns hold {barn_capacity}",
        extra={"debug_mode": debug_mode, "barn_capacity": barn_capacity},
    )
