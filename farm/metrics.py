"""Allocation and HTTP metrics for the farm service."""

from opentelemetry import metrics

from .logging_config import get_logger

logger = get_logger(__name__)

meter = metrics.get_meter(__name__)

# HTTP Request Metrics
http_request_duration = meter.create_histogram(
    name="http_request_duration_seconds",
    description="Duration of HTTP requests in seconds",
    unit="s",
)

http_requests_total = meter.create_counter(
    name="http_requests_total",
    description="Total number of HTTP requests",
)

http_request_errors = meter.create_counter(
    name="http_request_errors_total",
    description="Total number of HTTP request errors",
)

# Allocation Metrics
animals_added_total = meter.create_counter(
    name="animals_added_total",
    description="Total number of animals placed into a barn",
)

animals_removed_total = meter.create_counter(
    name="animals_removed_total",
    description="Total number of animals removed from the farm",
)

animals_moved_total = meter.create_counter(
    name="animals_moved_total",
    description="Total number of animals moved between barns by rebalancing",
)

barns_created_total = meter.create_counter(
    name="barns_created_total",
    description="Total number of barns built",
)

barns_destroyed_total = meter.create_counter(
    name="barns_destroyed_total",
    description="Total number of barns torn down",
)

barns_active = meter.create_up_down_counter(
    name="barns_active",
    description="Number of barns currently standing",
)


def record_http_request(method: str, endpoint: str, status_code: int, duration: float):
    """Record HTTP request metrics."""
    labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}

    http_request_duration.record(duration, labels)
    http_requests_total.add(1, labels)

    if status_code >= 400:
        http_request_errors.add(1, labels)


def record_animal_added(color: str):
    animals_added_total.add(1, {"color": color})


def record_animal_removed(color: str):
    animals_removed_total.add(1, {"color": color})


def record_animals_moved(color: str, count: int, reason: str):
    """Record rebalancing moves, tagged with what triggered them."""
    if count:
        animals_moved_total.add(count, {"color": color, "reason": reason})


def record_barn_created(color: str):
    barns_created_total.add(1, {"color": color})
    barns_active.add(1, {"color": color})


def record_barn_destroyed(color: str, reason: str):
    barns_destroyed_total.add(1, {"color": color, "reason": reason})
    barns_active.add(-1, {"color": color})


logger.debug("Allocation metrics instruments created")
