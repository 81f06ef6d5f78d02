"""Records exchanged with the Swish payment request API.

Attributes are snake_case in Python and camelCase on the wire, matching the
gateway's JSON. All records are immutable once built.
"""

import ipaddress
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from swishpay.services.payments.errors import SwishGatewayError


class SwishModel(BaseModel):
    """Base for gateway records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready body using gateway field names, without unset optionals."""

        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class PaymentRequest(SwishModel):
    """Payload for creating a payment request."""

    amount: str = Field(pattern=r"^\d+(\.\d{1,2})?$")
    # Replaced with the settlement currency when sent.
    currency: str = "SEK"
    callback_url: str = Field(min_length=1)
    payer_alias: str | None = None
    payee_alias: str = Field(min_length=1)
    message: str
    payee_payment_reference: str | None = None


class PaymentResponse(SwishModel):
    """Gateway view of one payment request at the time of the call.

    Fields the gateway adds beyond the documented ones are kept as extras, so
    `model_dump(by_alias=True, exclude_unset=True)` gives back the decoded body.
    """

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    payment_reference: str | None = None
    status: str | None = None
    amount: str | int | float | None = None
    currency: str | None = None
    callback_url: str | None = None
    payer_alias: str | None = None
    payee_alias: str | None = None
    message: str | None = None
    payee_payment_reference: str | None = None
    date_created: str | None = None
    date_paid: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    additional_information: str | None = None


class RefundRequest(SwishModel):
    """Payload for refunding a previously paid payment."""

    payer_payment_reference: str | None = None
    original_payment_reference: str = Field(min_length=1)
    payment_reference: str | None = None
    callback_url: str = Field(min_length=1)
    payer_alias: str | None = None
    payee_alias: str | None = None
    amount: str | None = Field(default=None, pattern=r"^\d+(\.\d{1,2})?$")
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    message: str | None = None


class PaymentRequestCreated(SwishModel):
    """Identifiers returned when the gateway accepts a payment request."""

    swish_id: str
    payment_request_token: str | None = None


class GatewayError(BaseModel):
    """Error payload returned by the gateway for a rejected request.

    The gateway usually answers with a list of error objects; the structured
    accessors read the first one while `payload` keeps the body untouched.
    """

    model_config = ConfigDict(frozen=True)

    status_code: int
    payload: Any

    def _first(self) -> dict[str, Any]:
        if isinstance(self.payload, dict):
            return self.payload
        if isinstance(self.payload, list) and self.payload and isinstance(self.payload[0], dict):
            return self.payload[0]
        return {}

    @property
    def error_code(self) -> str | None:
        return self._first().get("errorCode")

    @property
    def error_message(self) -> str | None:
        return self._first().get("errorMessage")

    @property
    def additional_information(self) -> str | None:
        return self._first().get("additionalInformation")


class GatewayResult(BaseModel):
    """Outcome of a payment request: exactly one of `value` or `error` is set."""

    model_config = ConfigDict(frozen=True)

    value: PaymentRequestCreated | None = None
    error: GatewayError | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "GatewayResult":
        if (self.value is None) == (self.error is None):
            raise ValueError("GatewayResult needs exactly one of value or error")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> PaymentRequestCreated:
        """Return the created identifiers or raise the gateway error."""

        if self.error is not None:
            raise SwishGatewayError(self.error.status_code, self.error.payload)
        return self.value


class ClientConfig(BaseModel):
    """Connection settings for one `SwishPaymentsClient`."""

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(min_length=1)
    # Trusted callback source: a single address or a CIDR network.
    server_ip: str
    cert_file: str
    key_file: str | None = None
    key_password: str | None = None
    ca_file: str | None = None
    timeout_seconds: float | None = None

    @field_validator("endpoint")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("server_ip")
    @classmethod
    def _valid_network(cls, value: str) -> str:
        ipaddress.ip_network(value.strip(), strict=False)
        return value.strip()
