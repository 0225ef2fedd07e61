"""
OpenTelemetry tracing configuration
"""
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
import structlog
import logging

from campaign_catalog.core.config import get_settings

# Disable verbose logging from OpenTelemetry
logging.getLogger("opentelemetry").setLevel(logging.WARNING)

logger = structlog.get_logger(__name__)


def init_tracing(app) -> bool:
    """Initialize OpenTelemetry tracing with an OTLP exporter"""
    settings = get_settings()
    if not settings.tracing_enabled:
        logger.info("Tracing disabled")
        return False

    try:
        resource = Resource(attributes={
            SERVICE_NAME: settings.service_name
        })
        provider = TracerProvider(resource=resource)

        if settings.otlp_endpoint:
            provider.add_span_processor(
                BatchSpanProcessor(
                    OTLPSpanExporter(endpoint=settings.otlp_endpoint),
                    max_queue_size=2048,
                    max_export_batch_size=512,
                    schedule_delay_millis=5000
                )
            )
        else:
            logger.warning("Tracing enabled without OTLP endpoint, spans are not exported")

        trace.set_tracer_provider(provider)

        # Instrument FastAPI - exclude health and metrics endpoints
        FastAPIInstrumentor.instrument_app(
            app,
            excluded_urls="/health,/metrics"
        )

        # Calls to the campaign backend
        HTTPXClientInstrumentor().instrument()

        logger.info(
            "OpenTelemetry tracing initialized successfully",
            service_name=settings.service_name,
            otlp_endpoint=settings.otlp_endpoint
        )
        return True

    except Exception as e:
        logger.error("Failed to initialize tracing", error=str(e), exc_info=True)
        # Don't fail startup if tracing fails
        return False
