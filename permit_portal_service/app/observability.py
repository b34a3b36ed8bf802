# Logging, tracing and metrics for the permit portal
import logging
from typing import List, Optional

from opentelemetry import trace, metrics
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader, ConsoleMetricExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from pythonjsonlogger import jsonlogger

from permit_portal_service.app.config import settings

logger = logging.getLogger("permit_portal_service")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(module)s %(funcName)s %(lineno)d %(message)s"
CONSOLE_METRICS_INTERVAL_MS = 60000
OTLP_METRICS_INTERVAL_MS = 5000


def setup_json_logging() -> None:
    """Routes every log record through one JSON handler on the root logger."""
    root_logger = logging.getLogger()
    if any(isinstance(h.formatter, jsonlogger.JsonFormatter) for h in root_logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(jsonlogger.JsonFormatter(
        fmt=LOG_FORMAT,
        rename_fields={"levelname": "level", "name": "logger_name", "asctime": "timestamp"},
    ))
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    level = settings.LOG_LEVEL.upper()
    root_logger.setLevel(level)
    logger.setLevel(level)
    logger.info(f"JSON logging configured at level {level}.")


def _build_tracer_provider(resource: Resource, otlp_endpoint: Optional[str]) -> TracerProvider:
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    if otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)))
        logger.info(f"Exporting spans to OTLP endpoint {otlp_endpoint}.")
    return provider


def _build_metric_readers(otlp_endpoint: Optional[str]) -> List[MetricReader]:
    readers: List[MetricReader] = [
        PeriodicExportingMetricReader(ConsoleMetricExporter(), export_interval_millis=CONSOLE_METRICS_INTERVAL_MS),
    ]
    if otlp_endpoint:
        readers.append(PeriodicExportingMetricReader(
            OTLPMetricExporter(endpoint=otlp_endpoint, insecure=True),
            export_interval_millis=OTLP_METRICS_INTERVAL_MS,
        ))
        logger.info(f"Exporting metrics to OTLP endpoint {otlp_endpoint}.")
    return readers


def setup_opentelemetry(service_name: str) -> None:
    """Installs global tracer and meter providers; console exporters are always on."""
    resource = Resource(attributes={SERVICE_NAME: service_name})
    trace.set_tracer_provider(_build_tracer_provider(resource, settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT))
    metrics.set_meter_provider(MeterProvider(
        resource=resource,
        metric_readers=_build_metric_readers(settings.OTEL_EXPORTER_OTLP_METRICS_ENDPOINT),
    ))
    logger.info(f"OpenTelemetry providers configured for service: {service_name}.")


setup_json_logging()

# Proxies resolve to the real providers once setup_opentelemetry has run.
tracer = trace.get_tracer("permit_portal_service.tracer")
meter = metrics.get_meter("permit_portal_service.meter")

applications_submitted_counter = meter.create_counter(
    name="permit_portal.applications.submitted.total",
    description="Permit applications submitted, by application type.",
    unit="1",
)
status_transitions_counter = meter.create_counter(
    name="permit_portal.status.transitions.total",
    description="Status changes applied by admins, by target status and acting role.",
    unit="1",
)
payments_submitted_counter = meter.create_counter(
    name="permit_portal.payments.submitted.total",
    description="Payment submissions and proof uploads, by payment method.",
    unit="1",
)
