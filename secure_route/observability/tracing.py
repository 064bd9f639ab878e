"""
OpenTelemetry tracing setup for secure-route.
"""

from typing import Any, Optional
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor


def setup_tracing(
    service_name: str = "secure-route",
    app: Optional[Any] = None,
    enable_console: bool = False
) -> TracerProvider:
    """
    Setup OpenTelemetry tracing.

    Args:
        service_name: Service name for traces
        app: FastAPI application to instrument, if any
        enable_console: Enable console span exporter
    """
    tracer_provider = TracerProvider(
        resource=Resource.create({"service.name": service_name})
    )

    if enable_console:
        tracer_provider.add_span_processor(
            BatchSpanProcessor(ConsoleSpanExporter())
        )

    trace.set_tracer_provider(tracer_provider)

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, tracer_provider=tracer_provider)

    return tracer_provider


def get_tracer(name: str = "secure_route"):
    """Get a tracer instance."""
    return trace.get_tracer(name)


class TracingContext:
    """Helper for creating hook spans."""

    def __init__(self, tracer_name: str = "secure_route"):
        self.tracer = get_tracer(tracer_name)

    def trace_hook(self, hook: str, style: str):
        """Span covering one hook invocation; use as a context manager."""
        return self.tracer.start_as_current_span(
            f"secure_route.hook.{hook}",
            attributes={"hook.name": hook, "hook.style": style}
        )
