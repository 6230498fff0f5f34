"""OpenTelemetry tracing and log export setup."""

from __future__ import annotations

import logging
import os
from typing import Any

import structlog
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

_SERVICE_NAME = "blogpost-api"
_otel_logging_configured = False
_initialized = False

_log = structlog.get_logger()


def configure_stdlib_logging(level: str = "info") -> None:
    """Route stdlib logging through structlog so all output is consistent.

    uvicorn, motor and OTEL SDK messages flow through structlog's processor
    chain, producing timestamped key=value output.
    """
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(),
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
        ],
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Driver heartbeats are noisy at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)


def init_telemetry() -> None:
    """Configure OpenTelemetry tracing, metrics, and log export.

    No-op if OTEL_EXPORTER_OTLP_ENDPOINT is unset or already initialized.
    """
    global _initialized  # noqa: PLW0603
    endpoint = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not endpoint or _initialized:
        return

    from opentelemetry.instrumentation.pymongo import PymongoInstrumentor

    resource = _build_resource()
    trace.set_tracer_provider(_build_tracer_provider(resource))
    metrics.set_meter_provider(_build_meter_provider(resource))
    _install_log_export(resource)

    # Spans for every MongoDB command issued through motor
    PymongoInstrumentor().instrument()

    _initialized = True
    _log.info("otel_initialized", endpoint=endpoint, service=_SERVICE_NAME)


def _build_resource() -> Resource:
    return Resource.create(
        {
            "service.name": _SERVICE_NAME,
            "service.version": os.environ.get("SERVICE_VERSION", "0.1.0"),
            "deployment.environment": os.environ.get("DEPLOYMENT_ENV", ""),
        }
    )


def _build_tracer_provider(resource: Resource) -> TracerProvider:
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
    return provider


def _build_meter_provider(resource: Resource) -> MeterProvider:
    reader = PeriodicExportingMetricReader(OTLPMetricExporter())
    return MeterProvider(metric_readers=[reader], resource=resource)


def _install_log_export(resource: Resource) -> None:
    """Attach an OTLP handler to the service logger that emit_to_otel_logs writes to."""
    global _otel_logging_configured  # noqa: PLW0603
    from opentelemetry._logs import set_logger_provider
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
    from opentelemetry.sdk._logs import LoggingHandler
    from opentelemetry.sdk._logs.export import BatchLogRecordProcessor

    provider = LoggerProvider(resource=resource)
    provider.add_log_record_processor(BatchLogRecordProcessor(OTLPLogExporter()))
    set_logger_provider(provider)

    otel_logger = logging.getLogger(_SERVICE_NAME)
    otel_logger.addHandler(LoggingHandler(logger_provider=provider))
    otel_logger.setLevel(logging.DEBUG)
    otel_logger.propagate = False  # console output already comes from structlog
    _otel_logging_configured = True


def shutdown_telemetry() -> None:
    """Flush and shutdown providers."""
    global _initialized, _otel_logging_configured  # noqa: PLW0603

    providers: list[Any] = [trace.get_tracer_provider(), metrics.get_meter_provider()]
    if _otel_logging_configured:
        from opentelemetry._logs import get_logger_provider

        providers.append(get_logger_provider())

    for provider in providers:
        # The API's default no-op providers have nothing to flush
        if isinstance(provider, (TracerProvider, MeterProvider, LoggerProvider)):
            provider.shutdown()

    _initialized = False
    _otel_logging_configured = False


def add_trace_context(logger: Any, method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Structlog processor that tags the event with the active request span, if any."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


# logging.Logger.makeRecord rejects ``extra`` keys that shadow LogRecord
# attributes; structlog's own keys are carried as msg/levelname instead.
_RESERVED_LOG_KEYS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "event",
    "level",
    "timestamp",
}


def emit_to_otel_logs(logger: Any, method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Structlog processor that re-emits to stdlib logging for OTel log export.

    Only active when OTEL_EXPORTER_OTLP_ENDPOINT is configured.
    """
    if not _otel_logging_configured:
        return event_dict

    level = getattr(logging, str(event_dict.get("level", "info")).upper(), logging.INFO)
    extra = {k: v for k, v in event_dict.items() if k not in _RESERVED_LOG_KEYS}
    logging.getLogger(_SERVICE_NAME).log(level, event_dict.get("event", ""), extra=extra)
    return event_dict
