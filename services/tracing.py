"""
OpenTelemetry tracing setup.

Spans are exported over OTLP/HTTP when OTEL_ENDPOINT is configured. Without
an endpoint a TracerProvider is still installed, so spans are created and
carry attributes but are not exported anywhere.
"""

import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from models.plugin_config import PluginConfig

logger = logging.getLogger(__name__)

TRACER_SERVICE_NAME = "engine-plugin-dynamic-connection"

_provider: Optional[TracerProvider] = None


def init_tracing(config: PluginConfig) -> TracerProvider:
    """
    Install the global tracer provider.

    Safe to call more than once; later calls return the provider installed
    by the first.

    Args:
        config: Plugin configuration with the OTLP endpoint and headers

    Returns:
        The installed TracerProvider
    """
    global _provider
    if _provider is not None:
        return _provider

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: TRACER_SERVICE_NAME}))

    if config.otel_endpoint:
        exporter = OTLPSpanExporter(endpoint=config.otel_endpoint, headers=config.otel_headers)
        provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info("=" * 60)
        logger.info("Trace export ENABLED")
        logger.info(f"  OTLP endpoint: {config.otel_endpoint}")
        logger.info(f"  Exporter headers configured: {len(config.otel_headers)}")
        logger.info("=" * 60)
    else:
        logger.warning("=" * 60)
        logger.warning("Trace export DISABLED")
        logger.warning("OTEL_ENDPOINT not set; spans are recorded but not exported")
        logger.warning("=" * 60)

    trace.set_tracer_provider(provider)
    _provider = provider
    return provider


def get_tracer() -> trace.Tracer:
    """Tracer for webhook spans."""
    return trace.get_tracer(TRACER_SERVICE_NAME)
