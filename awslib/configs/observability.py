"""Observability config."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings


def get_enable_otel_exporter() -> bool:
    """Get if the otel exporter is enabled."""
    return "OTEL_EXPORTER_OTLP_ENDPOINT" in os.environ


class ObservabilityConfig(BaseSettings):
    """Observability configuration.

    This config is used to configure logging and tracing.

    Attributes:
        service_namespace (str): The namespace of the service. Defaults to "awslib".
        enable_otel_tracer (bool): Whether to enable the otel tracer.
            Defaults to whether the "OTEL_EXPORTER_OTLP_ENDPOINT" environment variable is set.
        enable_console_tracer (bool): Whether to enable the console tracer. Defaults to False.
        enable_otel_logs (bool): Whether to enable the otel logs.
            Defaults to whether the "OTEL_EXPORTER_OTLP_ENDPOINT" environment variable is set.
        enable_console_logs (bool): Whether to enable the console logs exporter. Defaults to False.
        suppress_botocore_logs (bool): Whether to suppress the botocore logs. Defaults to True.

    """

    service_namespace: str = "awslib"

    enable_otel_tracer: bool = Field(
        default_factory=get_enable_otel_exporter, description="Whether to enable the otel tracer."
    )
    enable_console_tracer: bool = Field(default=False, description="Whether to enable the console tracer.")

    enable_otel_logs: bool = Field(
        default_factory=get_enable_otel_exporter, description="Whether to enable the otel logs."
    )
    enable_console_logs: bool = Field(default=False, description="Whether to enable the console logs.")

    suppress_botocore_logs: bool = Field(default=True, description="Whether to suppress the botocore logs.")
