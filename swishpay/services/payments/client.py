"""Async client for the Swish payment request API.

Every outbound call opens its own mutually authenticated connection, sends one
request and hands back the gateway's answer. Transport failures are logged and
re-raised unchanged; nothing is retried.
"""

import inspect
import ipaddress
import ssl
from time import perf_counter
from typing import Any, Awaitable, Callable
from uuid import uuid4

import httpx
from fastapi import Request
from fastapi.responses import PlainTextResponse, Response

from swishpay.common.logging import logger, payment_reference_ctx, swish_id_ctx, trace_id_ctx
from swishpay.common.metrics import (
    callbacks_received_total,
    gateway_errors_total,
    gateway_request_duration_seconds,
    gateway_requests_total,
)
from swishpay.services.payments.errors import SwishError
from swishpay.services.payments.schemas import (
    ClientConfig,
    GatewayError,
    GatewayResult,
    PaymentRequest,
    PaymentRequestCreated,
    PaymentResponse,
    RefundRequest,
)

# The gateway only settles in Swedish kronor.
FIXED_CURRENCY = "SEK"
PAYMENT_REQUEST_TOKEN_HEADER = "PaymentRequestToken"
LOCATION_MARKER = "paymentrequests/"
CORRELATION_HEADER = "x-correlation-id"


def is_trusted_address(remote_addr: str, trusted: ipaddress.IPv4Network | ipaddress.IPv6Network) -> bool:
    """True when `remote_addr` parses as an IP inside the trusted network.

    IPv4-mapped IPv6 addresses (``::ffff:a.b.c.d``) are compared as IPv4.
    """

    try:
        address = ipaddress.ip_address(remote_addr)
    except ValueError:
        return False
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return address in trusted


class SwishPaymentsClient:
    """Creates, reads and refunds Swish payment requests and receives callbacks."""

    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        service_name: str = "swishpay",
    ) -> None:
        self.config = config
        self.service_name = service_name
        self._transport = transport
        self._trusted_network = ipaddress.ip_network(config.server_ip, strict=False)

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context(cafile=self.config.ca_file)
        context.load_cert_chain(
            certfile=self.config.cert_file,
            keyfile=self.config.key_file,
            password=self.config.key_password,
        )
        return context

    def _http_client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(self.config.timeout_seconds)
        if self._transport is not None:
            return httpx.AsyncClient(transport=self._transport, timeout=timeout)
        return httpx.AsyncClient(verify=self._ssl_context(), timeout=timeout)

    async def _send(
        self,
        operation: str,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send one request, recording metrics; errors propagate as raised."""

        url = f"{self.config.endpoint}{path}"
        start = perf_counter()
        try:
            async with self._http_client() as client:
                response = await client.request(method, url, json=json)
        except Exception as exc:
            gateway_errors_total.labels(
                service=self.service_name,
                operation=operation,
                error_type=type(exc).__name__,
            ).inc()
            logger.error("gateway_transport_error operation=%s url=%s error=%s", operation, url, exc)
            raise
        finally:
            gateway_request_duration_seconds.labels(
                service=self.service_name,
                operation=operation,
            ).observe(max(0.0, perf_counter() - start))
        gateway_requests_total.labels(
            service=self.service_name,
            operation=operation,
            status_code=str(response.status_code),
        ).inc()
        logger.info("gateway_response operation=%s status_code=%s", operation, response.status_code)
        return response

    async def get_payment(self, token: str) -> PaymentResponse | list[Any]:
        """Fetch the current state of the payment request identified by `token`.

        A JSON object comes back as a `PaymentResponse`; anything else the
        gateway decodes to (its error list for an unknown token) is returned
        as decoded.
        """

        response = await self._send("get_payment", "GET", f"/paymentrequests/{token}")
        try:
            body = response.json()
        except ValueError as exc:
            logger.error("gateway_payload_invalid operation=get_payment token=%s error=%s", token, exc)
            raise
        if not isinstance(body, dict):
            logger.warning("get_payment_not_a_payment token=%s status_code=%s", token, response.status_code)
            return body
        return PaymentResponse.model_validate(body)

    async def payment_request(self, data: PaymentRequest) -> GatewayResult:
        """Create a payment request.

        On 201 the result carries the Swish id from the `Location` header and
        the token the payer's app is launched with. Any other status yields an
        error result holding the gateway's decoded JSON body.
        """

        body = data.to_wire()
        body["currency"] = FIXED_CURRENCY
        reference_token = payment_reference_ctx.set(data.payee_payment_reference or "")
        try:
            response = await self._send("payment_request", "POST", "/paymentrequests", json=body)

            if response.status_code != 201:
                error = GatewayError(status_code=response.status_code, payload=response.json())
                gateway_errors_total.labels(
                    service=self.service_name,
                    operation="payment_request",
                    error_type=error.error_code or "UNKNOWN",
                ).inc()
                logger.warning(
                    "payment_request_rejected status_code=%s error_code=%s error_message=%s",
                    response.status_code,
                    error.error_code,
                    error.error_message,
                )
                return GatewayResult(error=error)

            location = response.headers.get("location", "")
            _, marker, swish_id = location.partition(LOCATION_MARKER)
            if not marker or not swish_id:
                logger.error("payment_request_missing_location location=%s", location)
                raise SwishError(f"201 response without payment request location: {location!r}")
            id_token = swish_id_ctx.set(swish_id)
            try:
                logger.info("payment_request_created swish_id=%s", swish_id)
            finally:
                swish_id_ctx.reset(id_token)
        finally:
            payment_reference_ctx.reset(reference_token)
        return GatewayResult(
            value=PaymentRequestCreated(
                swish_id=swish_id,
                payment_request_token=response.headers.get(PAYMENT_REQUEST_TOKEN_HEADER),
            )
        )

    async def refund_request(self, data: RefundRequest) -> httpx.Response:
        """Submit a refund; the raw response is returned for the caller to inspect."""

        reference_token = payment_reference_ctx.set(data.original_payment_reference)
        try:
            return await self._send("refund_request", "POST", "/paymentrequests", json=data.to_wire())
        finally:
            payment_reference_ctx.reset(reference_token)

    def create_hook(self, callback: Callable[[Any], Any]) -> Callable[[Request], Awaitable[Response]]:
        """Build the endpoint the gateway calls as `callbackUrl`.

        Callers outside the trusted network get 401. Trusted callers have their
        JSON body passed to `callback` before a 201 is returned.
        """

        async def hook(request: Request) -> Response:
            trace_token = trace_id_ctx.set(request.headers.get(CORRELATION_HEADER) or str(uuid4()))
            try:
                return await handle(request)
            finally:
                trace_id_ctx.reset(trace_token)

        async def handle(request: Request) -> Response:
            remote_addr = request.client.host if request.client else ""
            if not is_trusted_address(remote_addr, self._trusted_network):
                callbacks_received_total.labels(service=self.service_name, outcome="rejected").inc()
                logger.warning("callback_rejected remote_addr=%s", remote_addr)
                return PlainTextResponse("not authorized", status_code=401)

            try:
                payload = await request.json()
            except ValueError as exc:
                callbacks_received_total.labels(service=self.service_name, outcome="invalid").inc()
                logger.warning("callback_invalid_body remote_addr=%s error=%s", remote_addr, exc)
                return PlainTextResponse("invalid payload", status_code=400)

            swish_id = payload.get("id") if isinstance(payload, dict) else None
            id_token = swish_id_ctx.set(str(swish_id or ""))
            try:
                result = callback(payload)
                if inspect.isawaitable(result):
                    await result
            finally:
                swish_id_ctx.reset(id_token)
            callbacks_received_total.labels(service=self.service_name, outcome="accepted").inc()
            return Response(status_code=201)

        return hook
