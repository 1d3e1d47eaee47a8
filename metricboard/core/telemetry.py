"""OpenTelemetry wiring for the tracker API.

Exporters are only installed when ``telemetry_enabled`` is set. The domain
counters below use the global meter, so they are no-ops until a meter
provider is configured.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from opentelemetry import metrics, trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_NAMESPACE, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

from metricboard.config import AppSettings

logger = logging.getLogger(__name__)

_METRIC_EXPORT_INTERVAL_MS = 10000
_installed_apps: set[int] = set()
_providers_configured = False

_meter = metrics.get_meter("metricboard")
_rejections = _meter.create_counter(
    "metricboard.requests.rejected",
    unit="1",
    description="Requests refused by a domain rule, labelled by error code",
)


def record_rejection(code: str, status_code: int) -> None:
    _rejections.add(1, {"error.code": code, "http.status_code": status_code})


def setup_telemetry(app: FastAPI, settings: AppSettings, engine: AsyncEngine | None = None) -> bool:
    """Install OTLP exporters once per process and instrument ``app``.

    Returns ``True`` when ``app`` was instrumented by this call.
    """

    global _providers_configured  # noqa: PLW0603 - process-wide providers

    if not settings.telemetry_enabled:
        logger.info("Telemetry disabled via configuration")
        return False
    if id(app) in _installed_apps:
        return False

    options = _exporter_options(settings)
    if not _providers_configured:
        resource = Resource.create(
            {
                SERVICE_NAME: settings.telemetry_service_name or settings.app_name,
                SERVICE_NAMESPACE: "metricboard",
            }
        )
        _install_providers(resource, ParentBased(TraceIdRatioBased(settings.telemetry_sample_ratio)), options)
        if engine is not None:
            SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine, tracer_provider=trace.get_tracer_provider())
        _providers_configured = True

    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=trace.get_tracer_provider(),
        meter_provider=metrics.get_meter_provider(),
    )
    _installed_apps.add(id(app))
    logger.info("Telemetry enabled, exporting to %s", options.get("endpoint", "the default OTLP endpoint"))
    return True


def _exporter_options(settings: AppSettings) -> dict[str, Any]:
    options: dict[str, Any] = {"insecure": settings.telemetry_otlp_insecure}
    if settings.telemetry_otlp_endpoint:
        options["endpoint"] = settings.telemetry_otlp_endpoint
    return options


def _install_providers(resource: Resource, sampler: ParentBased, options: dict[str, Any]) -> None:
    tracer_provider = TracerProvider(resource=resource, sampler=sampler)
    tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**options)))
    trace.set_tracer_provider(tracer_provider)

    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(**options), export_interval_millis=_METRIC_EXPORT_INTERVAL_MS
    )
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))

    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(OTLPLogExporter(**options)))
    set_logger_provider(logger_provider)
    LoggingInstrumentor().instrument(set_logging_format=False)


__all__ = ["record_rejection", "setup_telemetry"]
