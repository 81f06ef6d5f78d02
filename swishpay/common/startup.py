"""Startup-time helpers for safe config logging."""

import os

from swishpay.common.logging import logger

# Certificate and key paths are fine to log; their passphrases are not.
SECRET_MARKERS = ("PASSWORD", "SECRET", "TOKEN", "PASSPHRASE")


def _safe_env(name: str) -> str:
    """Return env value, redacted when the variable name looks secret."""

    value = os.getenv(name)
    if value is None:
        return "<unset>"
    if any(marker in name for marker in SECRET_MARKERS):
        return "<redacted>"
    return value


def log_startup_config(service_name: str, keys: list[str]) -> None:
    """Log the Swish connection settings a process started with."""

    config = {key: _safe_env(key) for key in keys}
    logger.info("startup_config service=%s config=%s", service_name, config)
