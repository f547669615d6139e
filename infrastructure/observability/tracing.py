"""
OpenTelemetry Distributed Tracing

Configures OpenTelemetry for the storefront. Spans wrap the checkout transaction,
webhook processing and every call to the payment provider; Django requests and the
outgoing HTTP calls made by the Stripe client are auto-instrumented.

Spans are exported over OTLP/HTTP to the collector at ``OTEL_EXPORTER_OTLP_ENDPOINT``.
"""

import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.django import DjangoInstrumentor
from opentelemetry.instrumentation.requests import RequestsInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

_initialized = False

# Proxy tracer: a no-op until setup_tracing() installs a provider
tracer = trace.get_tracer("storefront")


def setup_tracing(
    service_name: str = "storefront-backend",
    otlp_endpoint: Optional[str] = None,
    enable: bool = True,
) -> None:
    """
    Initialize OpenTelemetry tracing with an OTLP exporter.

    Args:
        service_name: Name of the service for tracing
        otlp_endpoint: Collector traces endpoint, e.g. ``http://otel-collector:4318/v1/traces``.
            When omitted the exporter falls back to the ``OTEL_EXPORTER_OTLP_*`` env vars.
        enable: Enable/disable tracing

    Example:
        setup_tracing(
            service_name="storefront-backend",
            otlp_endpoint="http://otel-collector:4318/v1/traces",
        )
    """
    global _initialized

    if _initialized:
        logger.warning("Tracing already initialized. Skipping.")
        return

    if not enable:
        logger.info("Tracing disabled via configuration")
        return

    try:
        resource = Resource(attributes={SERVICE_NAME: service_name})

        tracer_provider = TracerProvider(resource=resource)
        trace.set_tracer_provider(tracer_provider)

        exporter = OTLPSpanExporter(endpoint=otlp_endpoint) if otlp_endpoint else OTLPSpanExporter()
        tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info(f"OTLP span export configured: {otlp_endpoint or 'environment default'}")

        # Auto-instrument Django (traces all HTTP requests)
        DjangoInstrumentor().instrument()

        # Auto-instrument requests (the Stripe client's HTTP transport)
        RequestsInstrumentor().instrument()

        _initialized = True
        logger.info(f"OpenTelemetry tracing initialized for service: {service_name}")

    except Exception as e:
        logger.error(f"Failed to initialize tracing: {e}")
