"""S3 config."""

from typing import Literal

from pydantic import AliasChoices, AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class S3Config(BaseSettings):
    """S3 configuration.

    This config is used to configure S3 connections.

    Attributes:
        aws_access_key_id (str): The AWS access key ID for authenticating API requests.
            Can be set via AWS_ACCESS_KEY_ID or AWS_ACCESS_KEY environment variable.
        aws_secret_access_key (str): The AWS secret access key for authenticating API requests.
            Can be set via AWS_SECRET_ACCESS_KEY environment variable.
        aws_session_token (str | None): The AWS session token for temporary credentials.
            Can be set via AWS_SESSION_TOKEN environment variable. Defaults to None.
        aws_region (str | None): The AWS region where the buckets are located.
            Can be set via AWS_DEFAULT_REGION or AWS_REGION environment variable.
            Example: 'us-east-1'. Defaults to None.
        endpoint_url (AnyHttpUrl | None): The complete URL to the S3 service.
            Useful for S3-compatible services (e.g., MinIO, LocalStack).
            Can be set via AWS_ENDPOINT_URL or S3_ENDPOINT_URL environment variable.
            Default is None, which uses the standard AWS endpoint.
        use_ssl (bool): Whether to use SSL/TLS for secure connections.
            Can be set via AWS_USE_SSL or S3_USE_SSL environment variable. Defaults to True.
        verify (bool | str | None): Controls SSL certificate verification.
            If True, verifies the server's certificate (default).
            If False, SSL verification is disabled (not recommended for production).
            If a string, it's the path to a CA bundle to use for verification.
            Can be set via AWS_VERIFY or S3_VERIFY environment variable. Defaults to None.
        addressing_style (str): How buckets are addressed, "auto", "path" or "virtual".
            Can be set via S3_ADDRESSING_STYLE environment variable. Defaults to "auto".
        connect_timeout (float | None): Connect timeout in seconds.
            Can be set via S3_CONNECT_TIMEOUT environment variable. Defaults to None.
        read_timeout (float | None): Read timeout in seconds.
            Can be set via S3_READ_TIMEOUT environment variable. Defaults to None.

    """

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    aws_access_key_id: str = Field(
        description="The AWS access key ID for authenticating API requests.",
        validation_alias=AliasChoices("aws_access_key_id", "AWS_ACCESS_KEY_ID", "AWS_ACCESS_KEY"),
    )
    aws_secret_access_key: str = Field(
        description="The AWS secret access key for authenticating API requests.",
        validation_alias=AliasChoices("aws_secret_access_key", "AWS_SECRET_ACCESS_KEY"),
    )
    aws_session_token: str | None = Field(
        default=None,
        description="The AWS session token for temporary credentials.",
        validation_alias=AliasChoices("aws_session_token", "AWS_SESSION_TOKEN"),
    )
    aws_region: str | None = Field(
        default=None,
        description="The AWS region where the buckets are located (e.g., 'us-east-1').",
        validation_alias=AliasChoices("aws_region", "AWS_DEFAULT_REGION", "AWS_REGION"),
    )
    endpoint_url: AnyHttpUrl | None = Field(
        default=None,
        description="The complete URL to the S3 service. Useful for S3-compatible services.",
        validation_alias=AliasChoices("endpoint_url", "AWS_ENDPOINT_URL", "S3_ENDPOINT_URL"),
    )
    use_ssl: bool = Field(
        default=True,
        description="Whether to use SSL/TLS for secure connections.",
        validation_alias=AliasChoices("use_ssl", "AWS_USE_SSL", "S3_USE_SSL"),
    )
    verify: bool | str | None = Field(
        default=None,
        description="Controls SSL certificate verification. True to verify, False to disable, or path to CA bundle.",
        validation_alias=AliasChoices("verify", "AWS_VERIFY", "S3_VERIFY"),
    )
    addressing_style: Literal["auto", "path", "virtual"] = Field(
        default="auto",
        description="How buckets are addressed in request URLs.",
        validation_alias=AliasChoices("addressing_style", "S3_ADDRESSING_STYLE"),
    )
    connect_timeout: float | None = Field(
        default=None,
        description="Connect timeout in seconds.",
        validation_alias=AliasChoices("connect_timeout", "S3_CONNECT_TIMEOUT"),
    )
    read_timeout: float | None = Field(
        default=None,
        description="Read timeout in seconds.",
        validation_alias=AliasChoices("read_timeout", "S3_READ_TIMEOUT"),
    )
