"""Swish callback receiver.

Mounts the client's webhook handler at the configured callback path and logs
each payment or refund outcome the gateway reports.
"""

from typing import Any

from fastapi import FastAPI

from swishpay.common.config import settings
from swishpay.common.logging import configure_logging, logger, payment_reference_ctx
from swishpay.common.metrics import metrics_response
from swishpay.common.startup import log_startup_config
from swishpay.common.tracing import instrument_app, setup_tracing
from swishpay.services.payments.client import SwishPaymentsClient

configure_logging(settings.service_name, settings.log_level)
setup_tracing(settings.service_name, settings.otel_exporter_otlp_endpoint)
log_startup_config(
    settings.service_name,
    [
        "SERVICE_NAME",
        "SWISH_ENDPOINT",
        "SWISH_SERVER_IP",
        "SWISH_CERT_FILE",
        "SWISH_KEY_FILE",
        "SWISH_KEY_PASSWORD",
    ],
)
client = SwishPaymentsClient(settings.to_client_config(), service_name=settings.service_name)


def handle_callback(payload: Any) -> None:
    """Record the outcome reported by the gateway."""

    if not isinstance(payload, dict):
        logger.warning("callback_unexpected_payload type=%s", type(payload).__name__)
        return
    reference_token = payment_reference_ctx.set(str(payload.get("paymentReference") or ""))
    try:
        logger.info(
            "callback_received id=%s status=%s error_code=%s",
            payload.get("id"),
            payload.get("status"),
            payload.get("errorCode"),
        )
    finally:
        payment_reference_ctx.reset(reference_token)


app = FastAPI(title="SwishPay Callbacks")
instrument_app(app)
app.add_api_route(settings.swish_callback_path, client.create_hook(handle_callback), methods=["POST"])


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()
