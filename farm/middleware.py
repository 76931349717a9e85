import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response

from .logging_utils import log_api_request
from .metrics import record_http_request


async def log_requests_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log every HTTP request with its timing and record request metrics.

    Args:
        request: FastAPI request object
        call_next: Next middleware/route handler in the chain

    Returns:
        Response from the route handler
    """
    start_time = time.perf_counter()

    response = await call_next(request)

    elapsed = time.perf_counter() - start_time

    log_api_request(
        request=request,
        status_code=response.status_code,
        elapsed_ms=elapsed * 1000,
    )

    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    record_http_request(request.method, endpoint, response.status_code, elapsed)

    return response
