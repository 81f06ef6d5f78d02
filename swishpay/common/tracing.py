"""OpenTelemetry wiring for the callback app and outbound gateway calls."""

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor


def setup_tracing(service_name: str, otlp_endpoint: str) -> None:
    """Register an OTLP-exporting tracer provider and trace every httpx client."""

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    trace.set_tracer_provider(provider)
    # Gateway calls open a fresh AsyncClient each time, so instrument globally.
    HTTPXClientInstrumentor().instrument()


def instrument_app(app: FastAPI) -> None:
    """Attach FastAPI auto-instrumentation for inbound callback spans."""

    FastAPIInstrumentor.instrument_app(app)
