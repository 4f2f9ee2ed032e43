"""
OpenTelemetry tracing setup.
"""

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Tracer

from wordfreq import __version__

TRACER_NAME = "wordfreq"

# Global tracer instance
_tracer: Tracer | None = None


def setup_tracing(
    service_name: str,
    otlp_endpoint: str,
    enable_console_export: bool = False,
) -> Tracer:
    """
    Set up OpenTelemetry tracing with an OTLP exporter.

    Args:
        service_name: Reported service.name resource attribute.
        otlp_endpoint: Collector endpoint spans are exported to.
        enable_console_export: If True, also export spans to console.

    Returns:
        Tracer: The tracer instance.
    """
    global _tracer

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.version": __version__,
        }
    )

    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    )

    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer(TRACER_NAME)
    return _tracer


def shutdown_tracing() -> None:
    """Flush and shut down the tracer provider, if one was installed."""
    provider = trace.get_tracer_provider()
    if isinstance(provider, TracerProvider):
        provider.shutdown()


def get_tracer() -> Tracer:
    """
    Get the tracer instance.

    Falls back to the global (no-op unless configured) tracer when
    setup_tracing() has not been called.
    """
    if _tracer is None:
        return trace.get_tracer(TRACER_NAME)
    return _tracer
