"""Exceptions raised by the Swish client."""

from typing import Any


class SwishError(Exception):
    """Base class for errors originating in this package."""


class SwishGatewayError(SwishError):
    """Gateway rejected a request; `payload` is its decoded JSON error body."""

    def __init__(self, status_code: int, payload: Any) -> None:
        super().__init__(f"gateway returned {status_code}: {payload!r}")
        self.status_code = status_code
        self.payload = payload
