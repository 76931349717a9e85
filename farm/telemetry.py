"""OpenTelemetry configuration for the farm service."""

import os
import sys

from opentelemetry import metrics, trace
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from prometheus_client import start_http_server

from .logging_config import get_logger

logger = get_logger(__name__)

_METRICS_PORTS = (8080, 8081)


def telemetry_enabled() -> bool:
    """Telemetry is opt-in and never runs under pytest."""
    if not os.getenv("ENABLE_TELEMETRY"):
        return False
    if "pytest" in sys.modules or os.getenv("TESTING"):
        logger.info("Skipping OpenTelemetry setup during tests")
        return False
    return True


def _start_metrics_server() -> int:
    for port in _METRICS_PORTS:
        try:
            start_http_server(port)
        except OSError:
            continue
        return port
    raise OSError(f"No free port for the metrics server in {_METRICS_PORTS}")


def setup_telemetry(app):
    """Configure OpenTelemetry tracing and metrics for the FastAPI application."""
    if not telemetry_enabled():
        return

    try:
        prometheus_reader = PrometheusMetricReader()
        metrics.set_meter_provider(MeterProvider(metric_readers=[prometheus_reader]))

        port = _start_metrics_server()
        logger.info("Prometheus metrics server started", port=port)

        trace.set_tracer_provider(TracerProvider())
        tracer_provider = trace.get_tracer_provider()
        tracer_provider.add_span_processor(  # type: ignore[attr-defined]
            BatchSpanProcessor(ConsoleSpanExporter())
        )

        FastAPIInstrumentor.instrument_app(app)
        SQLAlchemyInstrumentor().instrument()
        logger.info("OpenTelemetry tracing and metrics setup completed")

    except Exception as e:
        # Telemetry must never keep the service from starting
        logger.error("Failed to setup OpenTelemetry", error=str(e))
