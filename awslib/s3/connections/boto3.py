"""Boto3 S3 connection."""

import contextlib
import logging
from collections.abc import Iterator
from types import TracebackType
from typing import Any, BinaryIO, Self

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    HTTPClientError,
    NoCredentialsError,
    ParamValidationError,
    PartialCredentialsError,
)
from botocore.exceptions import ConnectionError as BotoConnectionError
from opentelemetry import trace

from awslib.configs.s3 import S3Config
from awslib.s3.connections.abstract import (
    DEFAULT_MAX_KEYS,
    S3BucketCreateFailedException,
    S3BucketDeleteFailedException,
    S3ConnectionFailedException,
    S3DeleteFailedException,
    S3ErrorReason,
    S3GetFailedException,
    S3ListFailedException,
    S3OperationException,
    S3PutFailedException,
    normalize_etag,
)
from awslib.s3.connections.pydantic import (
    S3Bucket,
    S3CreateBucketResponse,
    S3DeleteBucketResponse,
    S3DeleteResponse,
    S3GetResponse,
    S3HeadResponse,
    S3ListAllBucketsResponse,
    S3ListBucketResponse,
    S3Object,
    S3Owner,
    S3PutResponse,
)
from awslib.s3.connections.utils import (
    check_bucket_name,
    check_bytes_size,
    check_max_keys,
    read_stream,
)

logger = logging.getLogger(__name__)

HTTP_NOT_MODIFIED = 304

_REASON_BY_ERROR_CODE: dict[str, S3ErrorReason] = {
    "NoSuchKey": S3ErrorReason.NOT_FOUND,
    "NotFound": S3ErrorReason.NOT_FOUND,
    "404": S3ErrorReason.NOT_FOUND,
    "NoSuchBucket": S3ErrorReason.NO_SUCH_BUCKET,
    "BucketAlreadyExists": S3ErrorReason.ALREADY_EXISTS,
    "BucketAlreadyOwnedByYou": S3ErrorReason.ALREADY_EXISTS,
    "InvalidBucketName": S3ErrorReason.INVALID_BUCKET_NAME,
    "BucketNotEmpty": S3ErrorReason.BUCKET_NOT_EMPTY,
    "AccessDenied": S3ErrorReason.ACCESS_DENIED,
    "AllAccessDisabled": S3ErrorReason.ACCESS_DENIED,
    "InvalidAccessKeyId": S3ErrorReason.ACCESS_DENIED,
    "SignatureDoesNotMatch": S3ErrorReason.ACCESS_DENIED,
    "403": S3ErrorReason.ACCESS_DENIED,
    "InvalidArgument": S3ErrorReason.INVALID_ARGUMENT,
    "InvalidRequest": S3ErrorReason.INVALID_ARGUMENT,
    "IncompleteBody": S3ErrorReason.INVALID_ARGUMENT,
    "EntityTooLarge": S3ErrorReason.INVALID_ARGUMENT,
    "KeyTooLongError": S3ErrorReason.INVALID_ARGUMENT,
    "PreconditionFailed": S3ErrorReason.PRECONDITION_FAILED,
    "412": S3ErrorReason.PRECONDITION_FAILED,
}


def _quote_etag(etag: str) -> str:
    return f'"{normalize_etag(etag)}"'


def _request_id(response: dict[str, Any]) -> str | None:
    return response.get("ResponseMetadata", {}).get("RequestId")


def _status_code(error: ClientError) -> int | None:
    return error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")


class Boto3S3Connection:
    """Boto3 S3 connection.

    Wraps a synchronous botocore S3 client and implements the `S3Connection` protocol.
    Botocore clients are thread-safe, so one connection may serve concurrent calls.
    Retries are disabled: every failure is reported to the caller right away.
    """

    def __init__(
        self,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        aws_session_token: str | None = None,
        region_name: str | None = None,
        endpoint_url: str | None = None,
        use_ssl: bool = True,
        verify: bool | str | None = None,
        addressing_style: str = "auto",
        connect_timeout: float | None = None,
        read_timeout: float | None = None,
    ) -> None:
        """Initialize the connection.

        Args:
            aws_access_key_id: AWS access key ID.
            aws_secret_access_key: AWS secret access key.
            aws_session_token: AWS session token.
            region_name: AWS region name.
            endpoint_url: Custom endpoint URL.
            use_ssl: Whether to use SSL.
            verify: Whether to verify SSL certificates, or a path to a CA bundle.
            addressing_style: S3 addressing style, one of "auto", "path" or "virtual".
            connect_timeout: Connect timeout in seconds.
            read_timeout: Read timeout in seconds.

        """
        config_kwargs: dict[str, Any] = {
            "retries": {"total_max_attempts": 1, "mode": "standard"},
            "s3": {"addressing_style": addressing_style},
        }
        if connect_timeout is not None:
            config_kwargs["connect_timeout"] = connect_timeout
        if read_timeout is not None:
            config_kwargs["read_timeout"] = read_timeout

        client_kwargs: dict[str, Any] = {"config": Config(**config_kwargs)}
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        if verify is not None:
            client_kwargs["verify"] = verify
        if not use_ssl:
            client_kwargs["use_ssl"] = False

        self._access_key_id = aws_access_key_id
        self._client = self._build_client(
            session_kwargs={
                "aws_access_key_id": aws_access_key_id,
                "aws_secret_access_key": aws_secret_access_key,
                "aws_session_token": aws_session_token,
                "region_name": region_name,
            },
            client_kwargs=client_kwargs,
        )
        self._tracer = trace.get_tracer(__name__)
        self._closed = False

    @classmethod
    def from_config(cls, config: S3Config) -> Self:
        """Create a connection from an S3 config."""
        return cls(
            aws_access_key_id=config.aws_access_key_id,
            aws_secret_access_key=config.aws_secret_access_key,
            aws_session_token=config.aws_session_token,
            region_name=config.aws_region,
            endpoint_url=str(config.endpoint_url) if config.endpoint_url else None,
            use_ssl=config.use_ssl,
            verify=config.verify,
            addressing_style=config.addressing_style,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
        )

    @staticmethod
    def _build_client(session_kwargs: dict[str, Any], client_kwargs: dict[str, Any]) -> Any:
        """Create the botocore S3 client."""
        session = boto3.session.Session(**session_kwargs)
        return session.client("s3", **client_kwargs)

    @property
    def access_key_id(self) -> str | None:
        """The access key ID the connection is bound to."""
        return self._access_key_id

    @property
    def closed(self) -> bool:
        """Whether the connection has been closed."""
        return self._closed

    def __enter__(self) -> Self:
        """Enter the context manager."""
        return self

    def __exit__(
        self, exc_type: type[BaseException] | None, exc_value: BaseException | None, traceback: TracebackType | None
    ) -> None:
        """Exit the context manager."""
        self.close()

    def close(self) -> None:
        """Close the underlying client and its connection pool."""
        if self._closed:
            return
        self._closed = True
        self._client.close()
        logger.debug("S3 connection closed")

    @contextlib.contextmanager
    def _operation(
        self,
        name: str,
        exception_class: type[S3OperationException],
        bucket: str | None = None,
        key: str | None = None,
    ) -> Iterator[None]:
        """Trace an operation and translate botocore errors into S3 exceptions.

        Raises:
            S3ConnectionFailedException: If botocore could not obtain a response.
            S3OperationException: The `exception_class` for any other failure.

        """
        attributes = {"s3.operation": name}
        if bucket is not None:
            attributes["s3.bucket"] = bucket
        if key is not None:
            attributes["s3.key"] = key

        logger.debug("S3 %s bucket=%s key=%s", name, bucket, key)
        with self._tracer.start_as_current_span(f"s3.{name}", attributes=attributes):
            try:
                yield
            except ClientError as e:
                exception = self._map_client_error(e, exception_class)
                logger.warning(
                    "S3 %s failed: kind=%s reason=%s code=%s request_id=%s",
                    name,
                    exception.kind,
                    exception.reason,
                    exception.code,
                    exception.request_id,
                )
                raise exception from e
            except (BotoConnectionError, HTTPClientError) as e:
                logger.warning("S3 %s failed: no response from the service: %s", name, e)
                raise S3ConnectionFailedException(str(e)) from e
            except BotoCoreError as e:
                reason = S3ErrorReason.SERVICE_ERROR
                if isinstance(e, NoCredentialsError | PartialCredentialsError):
                    reason = S3ErrorReason.ACCESS_DENIED
                elif isinstance(e, ParamValidationError):
                    reason = S3ErrorReason.INVALID_ARGUMENT
                logger.warning("S3 %s failed: kind=%s reason=%s: %s", name, exception_class.kind, reason, e)
                raise exception_class(str(e), reason=reason) from e

    def _map_client_error(self, error: ClientError, exception_class: type[S3OperationException]) -> S3OperationException:
        """Map a botocore ClientError to the operation's exception with a reason."""
        error_code = str(error.response.get("Error", {}).get("Code", ""))
        error_message = error.response.get("Error", {}).get("Message") or str(error)
        reason = _REASON_BY_ERROR_CODE.get(error_code, S3ErrorReason.SERVICE_ERROR)
        return exception_class(
            error_message,
            reason=reason,
            request_id=_request_id(error.response),
            code=error_code or None,
        )

    def create_bucket(self, bucket: str) -> S3CreateBucketResponse:
        """Create a bucket."""
        check_bucket_name(bucket)
        with self._operation("create_bucket", S3BucketCreateFailedException, bucket):
            response = self._client.create_bucket(Bucket=bucket)
        return S3CreateBucketResponse(
            request_id=_request_id(response),
            bucket=bucket,
            location=response.get("Location"),
        )

    def list_all_buckets(self) -> S3ListAllBucketsResponse:
        """List all buckets owned by the caller's account."""
        with self._operation("list_all_buckets", S3ListFailedException):
            response = self._client.list_buckets()
        buckets = sorted(
            (
                S3Bucket(name=bucket["Name"], creation_date=bucket.get("CreationDate"))
                for bucket in response.get("Buckets", [])
            ),
            key=lambda bucket: bucket.name,
        )
        owner = None
        if owner_data := response.get("Owner"):
            owner = S3Owner(id=owner_data.get("ID"), display_name=owner_data.get("DisplayName"))
        return S3ListAllBucketsResponse(request_id=_request_id(response), buckets=buckets, owner=owner)

    def delete_bucket(self, bucket: str) -> S3DeleteBucketResponse:
        """Delete a bucket."""
        with self._operation("delete_bucket", S3BucketDeleteFailedException, bucket):
            response = self._client.delete_bucket(Bucket=bucket)
        return S3DeleteBucketResponse(request_id=_request_id(response), bucket=bucket)

    def list_bucket(
        self,
        bucket: str,
        prefix: str = "",
        marker: str = "",
        max_keys: int = DEFAULT_MAX_KEYS,
        delimiter: str | None = None,
    ) -> S3ListBucketResponse:
        """List the objects of a bucket, one page at a time."""
        check_max_keys(max_keys)
        kwargs: dict[str, Any] = {"Bucket": bucket, "MaxKeys": max_keys}
        if prefix:
            kwargs["Prefix"] = prefix
        if marker:
            kwargs["Marker"] = marker
        if delimiter:
            kwargs["Delimiter"] = delimiter

        with self._operation("list_bucket", S3ListFailedException, bucket):
            response = self._client.list_objects(**kwargs)

        keys = [
            S3Object(
                key=obj["Key"],
                size=obj.get("Size", 0),
                etag=normalize_etag(obj.get("ETag")),
                last_modified=obj.get("LastModified"),
                storage_class=obj.get("StorageClass"),
            )
            for obj in response.get("Contents", [])
        ]
        common_prefixes = [prefix_data["Prefix"] for prefix_data in response.get("CommonPrefixes", [])]
        is_truncated = bool(response.get("IsTruncated"))

        # NextMarker is only sent by S3 when a delimiter was given.
        next_marker = None
        if is_truncated:
            next_marker = response.get("NextMarker")
            if not next_marker:
                candidates = [keys[-1].key] if keys else []
                if common_prefixes:
                    candidates.append(common_prefixes[-1])
                next_marker = max(candidates) if candidates else None

        return S3ListBucketResponse(
            request_id=_request_id(response),
            bucket=bucket,
            prefix=prefix,
            marker=marker,
            delimiter=delimiter,
            max_keys=max_keys,
            is_truncated=is_truncated,
            next_marker=next_marker,
            keys=keys,
            common_prefixes=common_prefixes,
        )

    def put_stream(
        self,
        bucket: str,
        key: str,
        stream: BinaryIO,
        content_type: str,
        size: int = -1,
    ) -> S3PutResponse:
        """Store an object read from a binary stream."""
        data = read_stream(stream, size)
        return self._put(bucket, key, data, content_type)

    def put_bytes(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str,
        size: int,
    ) -> S3PutResponse:
        """Store an object given as a byte buffer."""
        check_bytes_size(data, size)
        return self._put(bucket, key, data, content_type)

    def _put(self, bucket: str, key: str, data: bytes, content_type: str) -> S3PutResponse:
        kwargs: dict[str, Any] = {"Bucket": bucket, "Key": key, "Body": data, "ContentLength": len(data)}
        if content_type:
            kwargs["ContentType"] = content_type
        with self._operation("put", S3PutFailedException, bucket, key):
            response = self._client.put_object(**kwargs)
        return S3PutResponse(
            request_id=_request_id(response),
            bucket=bucket,
            key=key,
            etag=normalize_etag(response.get("ETag")),
            version_id=response.get("VersionId"),
        )

    def get(self, bucket: str, key: str, old_etag: str | None = None) -> S3GetResponse:
        """Retrieve an object, optionally only if its etag changed."""
        kwargs: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if old_etag:
            kwargs["IfNoneMatch"] = _quote_etag(old_etag)

        with self._operation("get", S3GetFailedException, bucket, key):
            try:
                response = self._client.get_object(**kwargs)
            except ClientError as e:
                if old_etag and _status_code(e) == HTTP_NOT_MODIFIED:
                    logger.debug("S3 get bucket=%s key=%s not modified", bucket, key)
                    return S3GetResponse(
                        request_id=_request_id(e.response),
                        bucket=bucket,
                        key=key,
                        is_modified=False,
                        etag=normalize_etag(old_etag),
                    )
                raise
            with contextlib.closing(response["Body"]) as body:
                data = body.read()

        return S3GetResponse(
            request_id=_request_id(response),
            bucket=bucket,
            key=key,
            is_modified=True,
            body=data,
            etag=normalize_etag(response.get("ETag")),
            content_type=response.get("ContentType"),
            content_length=response.get("ContentLength", len(data)),
            last_modified=response.get("LastModified"),
            metadata=response.get("Metadata") or {},
        )

    def delete(self, bucket: str, key: str) -> S3DeleteResponse:
        """Delete an object."""
        with self._operation("delete", S3DeleteFailedException, bucket, key):
            response = self._client.delete_object(Bucket=bucket, Key=key)
        return S3DeleteResponse(
            request_id=_request_id(response),
            bucket=bucket,
            key=key,
            delete_marker=response.get("DeleteMarker"),
            version_id=response.get("VersionId"),
        )

    def head(self, bucket: str, key: str) -> S3HeadResponse:
        """Retrieve the metadata of an object."""
        with self._operation("head", S3GetFailedException, bucket, key):
            response = self._client.head_object(Bucket=bucket, Key=key)
        return S3HeadResponse(
            request_id=_request_id(response),
            bucket=bucket,
            key=key,
            etag=normalize_etag(response.get("ETag")),
            content_type=response.get("ContentType"),
            content_length=response.get("ContentLength"),
            last_modified=response.get("LastModified"),
            metadata=response.get("Metadata") or {},
        )
