"""Prometheus metric definitions for gateway calls and inbound callbacks."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


gateway_requests_total = Counter(
    "swish_gateway_requests_total",
    "Total requests sent to the Swish gateway",
    ["service", "operation", "status_code"],
)
gateway_request_duration_seconds = Histogram(
    "swish_gateway_request_duration_seconds",
    "Swish gateway request duration seconds",
    ["service", "operation"],
)
gateway_errors_total = Counter(
    "swish_gateway_errors_total",
    "Gateway calls that ended in a transport failure or gateway error payload",
    ["service", "operation", "error_type"],
)
callbacks_received_total = Counter(
    "swish_callbacks_received_total",
    "Inbound Swish callbacks by authorization outcome",
    ["service", "outcome"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
