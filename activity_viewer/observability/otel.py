"""OpenTelemetry + Prometheus fallback wiring for the activity viewer backend."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI

from activity_viewer import config

logger = logging.getLogger("activity_viewer.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None
_fastapi_instrumentor: Any | None = None

_ingestion_counter: Any | None = None
_ingestion_latency_hist: Any | None = None
_skipped_lines_counter: Any | None = None
_poll_failure_counter: Any | None = None

_prom_enabled = False
_prom_ingestion_counter: Any | None = None
_prom_ingestion_latency_hist: Any | None = None
_prom_skipped_lines_counter: Any | None = None
_prom_poll_failure_counter: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _start_prometheus() -> None:
    global _prom_enabled
    global _prom_ingestion_counter, _prom_ingestion_latency_hist
    global _prom_skipped_lines_counter, _prom_poll_failure_counter

    try:
        from prometheus_client import Counter, Histogram, start_http_server

        start_http_server(config.PROM_PORT)
        _prom_ingestion_counter = Counter(
            "alv_ingestion_total",
            "Count of log load and append operations",
            ["kind", "result"],
        )
        _prom_ingestion_latency_hist = Histogram(
            "alv_ingestion_latency_ms",
            "Parse and index latency for log ingestion",
            ["kind", "result"],
        )
        _prom_skipped_lines_counter = Counter(
            "alv_skipped_lines_total",
            "Malformed log lines skipped by the parser",
            ["kind"],
        )
        _prom_poll_failure_counter = Counter(
            "alv_tail_poll_failures_total",
            "Live tail acquisition failures",
            [],
        )
        _prom_enabled = True
        logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Prometheus fallback not started: %s", exc)
        _prom_enabled = False


def initialize(app: FastAPI | None = None) -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider, _fastapi_instrumentor
    global _ingestion_counter, _ingestion_latency_hist, _skipped_lines_counter, _poll_failure_counter

    if _initialized:
        if _enabled and app and _fastapi_instrumentor:
            _fastapi_instrumentor.instrument_app(app)
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (ALV_OTEL_ENABLED=false)")
        return

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "activity-viewer-backend"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "activity-viewer",
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=traces_endpoint or None)))
    trace.set_tracer_provider(trace_provider)

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("activity_viewer")

    _ingestion_counter = meter.create_counter(
        "alv_ingestion_total",
        unit="1",
        description="Count of log load and append operations",
    )
    _ingestion_latency_hist = meter.create_histogram(
        "alv_ingestion_latency_ms",
        unit="ms",
        description="Parse and index latency for log ingestion",
    )
    _skipped_lines_counter = meter.create_counter(
        "alv_skipped_lines_total",
        unit="1",
        description="Malformed log lines skipped by the parser",
    )
    _poll_failure_counter = meter.create_counter(
        "alv_tail_poll_failures_total",
        unit="1",
        description="Live tail acquisition failures",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = trace.get_tracer("activity_viewer")
    _fastapi_instrumentor = FastAPIInstrumentor()
    _enabled = True

    if app:
        _fastapi_instrumentor.instrument_app(app)

    if config.PROM_PORT > 0:
        _start_prometheus()

    logger.info(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown(app: FastAPI | None = None) -> None:
    global _enabled
    if not _initialized:
        return
    try:
        if app and _fastapi_instrumentor:
            _fastapi_instrumentor.uninstrument_app(app)
    except Exception:
        logger.debug("FastAPI uninstrumentation failed", exc_info=True)
    for provider in (_meter_provider, _trace_provider):
        try:
            if provider is not None:
                provider.shutdown()
        except Exception:
            logger.debug("Telemetry provider shutdown failed", exc_info=True)
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_ingestion(kind: str, result: str, duration_ms: float, *, entries: int = 0) -> None:
    labels = {"kind": kind or "unknown", "result": result or "unknown"}
    if _enabled and _ingestion_counter is not None:
        _ingestion_counter.add(1, {**labels, "entries": max(0, int(entries))})
    if _enabled and _ingestion_latency_hist is not None:
        _ingestion_latency_hist.record(max(0.0, float(duration_ms)), labels)
    if _prom_enabled and _prom_ingestion_counter is not None:
        _prom_ingestion_counter.labels(**labels).inc()
    if _prom_enabled and _prom_ingestion_latency_hist is not None:
        _prom_ingestion_latency_hist.labels(**labels).observe(max(0.0, float(duration_ms)))


def record_skipped_lines(count: int, *, kind: str) -> None:
    safe_count = max(0, int(count))
    if safe_count == 0:
        return
    labels = {"kind": kind or "unknown"}
    if _enabled and _skipped_lines_counter is not None:
        _skipped_lines_counter.add(safe_count, labels)
    if _prom_enabled and _prom_skipped_lines_counter is not None:
        _prom_skipped_lines_counter.labels(**labels).inc(safe_count)


def record_poll_failure(consecutive_failures: int) -> None:
    if _enabled and _poll_failure_counter is not None:
        _poll_failure_counter.add(1, {"consecutive": max(0, int(consecutive_failures))})
    if _prom_enabled and _prom_poll_failure_counter is not None:
        _prom_poll_failure_counter.inc()
