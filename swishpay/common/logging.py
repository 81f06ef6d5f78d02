"""Structured JSON logging with request/payment context fields."""

import logging
import sys
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter


SERVICE_NAME = "swishpay"

trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")
swish_id_ctx: ContextVar[str] = ContextVar("swish_id", default="")
payment_reference_ctx: ContextVar[str] = ContextVar("payment_reference", default="")


class ContextFilter(logging.Filter):
    """Inject service and correlation identifiers into every log record."""

    def __init__(self, service_name: str = SERVICE_NAME) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        record.trace_id = trace_id_ctx.get()
        record.swish_id = swish_id_ctx.get()
        record.payment_reference = payment_reference_ctx.get()
        return True


def configure_logging(service_name: str = SERVICE_NAME, log_level: str = "INFO") -> None:
    """Configure root logger once per process."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter(service_name)
    handler.addFilter(context_filter)
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(service_name)s %(trace_id)s %(swish_id)s %(payment_reference)s %(message)s"
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)
    root.addFilter(context_filter)


logger = logging.getLogger("swishpay")
