"""Operator CLI for the configured Swish gateway.

Reads connection settings from the environment (or `.env`) and runs one
payment request, status lookup or refund, printing the gateway's answer.
"""

import argparse
import asyncio
import json

from swishpay.common.config import settings
from swishpay.common.logging import configure_logging
from swishpay.common.tracing import setup_tracing
from swishpay.services.payments.client import SwishPaymentsClient
from swishpay.services.payments.schemas import PaymentRequest, RefundRequest


async def get_payment(client: SwishPaymentsClient, args: argparse.Namespace) -> dict:
    payment = await client.get_payment(args.token)
    return payment.model_dump(by_alias=True, exclude_unset=True)


async def create_payment(client: SwishPaymentsClient, args: argparse.Namespace) -> dict:
    result = await client.payment_request(
        PaymentRequest(
            amount=args.amount,
            callback_url=args.callback_url,
            payee_alias=args.payee_alias,
            payer_alias=args.payer_alias,
            message=args.message,
            payee_payment_reference=args.reference,
        )
    )
    if not result.ok:
        return {"status_code": result.error.status_code, "error": result.error.payload}
    return result.value.model_dump(by_alias=True)


async def refund(client: SwishPaymentsClient, args: argparse.Namespace) -> dict:
    response = await client.refund_request(
        RefundRequest(
            original_payment_reference=args.original_reference,
            callback_url=args.callback_url,
            payer_alias=args.payer_alias,
            amount=args.amount,
            message=args.message,
        )
    )
    return {
        "status_code": response.status_code,
        "location": response.headers.get("location"),
        "body": response.text,
    }


def main() -> None:
    """Parse CLI args and run one gateway operation."""

    parser = argparse.ArgumentParser(description="Talk to the configured Swish gateway.")
    sub = parser.add_subparsers(dest="command", required=True)

    get_cmd = sub.add_parser("get", help="Fetch a payment request by token")
    get_cmd.add_argument("token")
    get_cmd.set_defaults(run=get_payment)

    create_cmd = sub.add_parser("create", help="Create a payment request")
    create_cmd.add_argument("--amount", required=True)
    create_cmd.add_argument("--callback-url", required=True)
    create_cmd.add_argument("--payee-alias", required=True)
    create_cmd.add_argument("--payer-alias", default=None)
    create_cmd.add_argument("--message", default="")
    create_cmd.add_argument("--reference", default=None, help="Payee payment reference")
    create_cmd.set_defaults(run=create_payment)

    refund_cmd = sub.add_parser("refund", help="Refund a paid payment")
    refund_cmd.add_argument("--original-reference", required=True)
    refund_cmd.add_argument("--callback-url", required=True)
    refund_cmd.add_argument("--payer-alias", default=None)
    refund_cmd.add_argument("--amount", default=None)
    refund_cmd.add_argument("--message", default=None)
    refund_cmd.set_defaults(run=refund)

    args = parser.parse_args()
    configure_logging(settings.service_name, settings.log_level)
    setup_tracing(settings.service_name, settings.otel_exporter_otlp_endpoint)
    client = SwishPaymentsClient(settings.to_client_config(), service_name=settings.service_name)
    print(json.dumps(asyncio.run(args.run(client, args)), indent=2))


if __name__ == "__main__":
    main()
