"""Real TLS client construction and gateway metrics."""

import ssl
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID
from prometheus_client import REGISTRY

from swishpay.services.payments.client import SwishPaymentsClient
from swishpay.services.payments.schemas import ClientConfig, PaymentRequest

ENDPOINT = "https://gateway.test/swish-cpcapi/api/v1"
KEY_PASSWORD = "s3cret"


@pytest.fixture
def client_cert(tmp_path):
    """Self-signed certificate with a passphrase-protected key."""

    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "merchant.test")])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    cert_path = tmp_path / "client.pem"
    key_path = tmp_path / "client.key"
    cert_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    key_path.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.BestAvailableEncryption(KEY_PASSWORD.encode()),
        )
    )
    return cert_path, key_path


def sample(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.asyncio
async def test_http_client_loads_certificate_and_timeout(client_cert):
    cert_path, key_path = client_cert
    config = ClientConfig(
        endpoint=ENDPOINT,
        server_ip="10.0.0.5",
        cert_file=str(cert_path),
        key_file=str(key_path),
        key_password=KEY_PASSWORD,
        ca_file=str(cert_path),
        timeout_seconds=8.0,
    )

    http_client = SwishPaymentsClient(config)._http_client()
    try:
        assert http_client.timeout == httpx.Timeout(8.0)
    finally:
        await http_client.aclose()


def test_wrong_key_password_fails(client_cert):
    cert_path, key_path = client_cert
    config = ClientConfig(
        endpoint=ENDPOINT,
        server_ip="10.0.0.5",
        cert_file=str(cert_path),
        key_file=str(key_path),
        key_password="wrong",
    )

    with pytest.raises(ssl.SSLError):
        SwishPaymentsClient(config)._ssl_context()


@pytest.mark.asyncio
async def test_missing_certificate_propagates(tmp_path):
    """A missing cert file surfaces as the original OS error, counted once."""

    config = ClientConfig(endpoint=ENDPOINT, server_ip="10.0.0.5", cert_file=str(tmp_path / "missing.pem"))
    client = SwishPaymentsClient(config, service_name="cert-test")

    with pytest.raises(FileNotFoundError):
        await client.get_payment("TOKEN")

    assert sample(
        "swish_gateway_errors_total", service="cert-test", operation="get_payment", error_type="FileNotFoundError"
    ) == 1.0


@pytest.mark.asyncio
async def test_gateway_metrics_by_outcome(config):
    responses = [
        httpx.Response(201, headers={"Location": "https://gateway.test/paymentrequests/ABC123"}),
        httpx.Response(422, json={"errorCode": "RF01", "errorMessage": "bad"}),
        httpx.ConnectError("Connection reset by peer"),
    ]

    def gateway(request):
        outcome = responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    client = SwishPaymentsClient(config, transport=httpx.MockTransport(gateway), service_name="metrics-test")
    data = PaymentRequest(
        amount="100",
        callback_url="https://merchant.test/swish/callback",
        payee_alias="1231181189",
        message="Order 42",
    )
    labels = {"service": "metrics-test", "operation": "payment_request"}

    await client.payment_request(data)
    await client.payment_request(data)
    with pytest.raises(httpx.ConnectError):
        await client.payment_request(data)

    assert sample("swish_gateway_requests_total", status_code="201", **labels) == 1.0
    assert sample("swish_gateway_requests_total", status_code="422", **labels) == 1.0
    assert sample("swish_gateway_errors_total", error_type="RF01", **labels) == 1.0
    assert sample("swish_gateway_errors_total", error_type="ConnectError", **labels) == 1.0
    assert sample("swish_gateway_request_duration_seconds_count", **labels) == 3.0
