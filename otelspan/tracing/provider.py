"""OpenTelemetry provider setup.

Provides:
- TracerProvider construction from settings
- Exporter selection (OTLP, console, none)
- Tracer lookup for span wrappers
"""

from typing import Optional

from loguru import logger
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from otelspan.utils.config import Settings, get_settings

# Last provider created by init_tracing, flushed by shutdown_tracing
_tracer_provider: Optional[TracerProvider] = None


def init_tracing(
    settings: Optional[Settings] = None,
    set_global: bool = True,
) -> Optional[TracerProvider]:
    """Initialize OpenTelemetry tracing.

    Args:
        settings: Settings to use. Loaded from the environment if not provided.
        set_global: Install the provider as the global tracer provider.

    Returns:
        The configured provider, or None when tracing is disabled.
    """
    global _tracer_provider

    settings = settings or get_settings()

    if not settings.enable_tracing:
        logger.info("Tracing disabled by configuration")
        return None

    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": settings.app_version,
            "deployment.environment": settings.app_env,
        }
    )

    provider = TracerProvider(
        resource=resource,
        sampler=TraceIdRatioBased(settings.otel_sample_rate),
    )
    _add_exporter(provider, settings)

    if set_global:
        trace.set_tracer_provider(provider)
    _tracer_provider = provider

    logger.info(
        f"Tracing initialized: service={settings.otel_service_name}, "
        f"exporter={settings.otel_exporter_type}, "
        f"sample_rate={settings.otel_sample_rate}"
    )
    return provider


def _add_exporter(provider: TracerProvider, settings: Settings) -> None:
    """Add the span processor matching the configured exporter type."""
    exporter_type = settings.otel_exporter_type

    if exporter_type == "otlp":
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        except ImportError:
            logger.warning("OTLP exporter not available, falling back to console")
            _add_console_exporter(provider)
            return

        exporter = OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info(f"Added OTLP exporter: {settings.otel_exporter_otlp_endpoint}")

    elif exporter_type == "console":
        _add_console_exporter(provider)

    elif exporter_type == "none":
        logger.info("No span exporter configured")

    else:
        logger.warning(f"Unknown exporter type: {exporter_type}")
        _add_console_exporter(provider)


def _add_console_exporter(provider: TracerProvider) -> None:
    provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    logger.info("Added console exporter")


def get_tracer(
    name: Optional[str] = None,
    tracer_provider: Optional[trace.TracerProvider] = None,
) -> trace.Tracer:
    """Get a tracer, from the given provider or the global one."""
    name = name or get_settings().otel_tracer_name
    return trace.get_tracer(name, tracer_provider=tracer_provider)


def shutdown_tracing() -> None:
    """Flush and shut down the provider created by the last init_tracing call."""
    global _tracer_provider

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        _tracer_provider = None
        logger.info("Tracing shutdown complete")
