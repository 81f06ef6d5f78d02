"""Environment-driven settings for the callback app and operator scripts.

The client library itself never reads the environment; entrypoints load this
once and hand a `ClientConfig` to `SwishPaymentsClient` (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from swishpay.services.payments.schemas import ClientConfig


class SwishSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "swish-callbacks"
    log_level: str = "INFO"
    swish_endpoint: str
    swish_server_ip: str
    swish_cert_file: str
    swish_key_file: str | None = None
    swish_key_password: str | None = None
    swish_ca_file: str | None = None
    swish_timeout_seconds: float | None = None
    swish_callback_path: str = "/swish/callback"
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def to_client_config(self) -> ClientConfig:
        return ClientConfig(
            endpoint=self.swish_endpoint,
            server_ip=self.swish_server_ip,
            cert_file=self.swish_cert_file,
            key_file=self.swish_key_file or None,
            key_password=self.swish_key_password or None,
            ca_file=self.swish_ca_file or None,
            timeout_seconds=self.swish_timeout_seconds,
        )


settings = SwishSettings()
