"""Shared fixtures: a client wired to an in-memory gateway."""

import json
import os

# The callback app builds its settings at import time.
os.environ.setdefault("SWISH_ENDPOINT", "https://gateway.test/swish-cpcapi/api/v1")
os.environ.setdefault("SWISH_SERVER_IP", "10.0.0.5")
os.environ.setdefault("SWISH_CERT_FILE", "/nonexistent/client.pem")
os.environ.setdefault("OTEL_EXPORTER_OTLP_ENDPOINT", "http://127.0.0.1:4318/v1/traces")
os.environ.setdefault("OTEL_SDK_DISABLED", "true")

import httpx
import pytest

from swishpay.services.payments.client import SwishPaymentsClient
from swishpay.services.payments.schemas import ClientConfig

ENDPOINT = "https://gateway.test/swish-cpcapi/api/v1"


class RecordingGateway:
    """Answers every request with a canned response and keeps what it was sent."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.response = httpx.Response(200, json={})
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response

    def last_json(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def config():
    return ClientConfig(endpoint=ENDPOINT, server_ip="10.0.0.5", cert_file="/nonexistent/client.pem")


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def client(config, gateway):
    return SwishPaymentsClient(config, transport=httpx.MockTransport(gateway))
