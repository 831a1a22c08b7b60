"""Smoke test against a live S3 endpoint.

Runs every connection operation once against a scratch bucket:

    AWS_ACCESS_KEY=... AWS_SECRET_ACCESS_KEY=... python -m awslib --bucket my-scratch-bucket

Exit codes: 0 on success, 1 on missing credentials or a failed operation,
2 when the service could not be reached.
"""

import argparse
import io
import logging
import os
import sys
import uuid
from collections.abc import Sequence

from awslib.factory import AWSConnectionFactory
from awslib.observability.setupper import ObservabilitySetupper
from awslib.s3.connections.abstract import (
    S3Connection,
    S3ConnectionFailedException,
    S3Exception,
    S3GetFailedException,
    S3OperationException,
)
from awslib.s3.pagination import list_all_keys

EXIT_OK = 0
EXIT_OPERATION_FAILED = 1
EXIT_CONNECTION_FAILED = 2

logger = logging.getLogger(__name__)

SMOKE_KEY = "awslib-smoke/object.txt"
SMOKE_BODY = b"awslib smoke test\n"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="awslib", description="Run an S3 smoke test.")
    parser.add_argument(
        "--bucket",
        default=None,
        help="Scratch bucket to create and delete. Defaults to a random name.",
    )
    parser.add_argument("--endpoint-url", default=None, help="Custom S3 endpoint, e.g. a MinIO server.")
    parser.add_argument("--region", default=None, help="AWS region.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level of the root logger.",
    )
    return parser


def _read_credentials() -> tuple[str, str] | None:
    access_key_id = os.environ.get("AWS_ACCESS_KEY") or os.environ.get("AWS_ACCESS_KEY_ID")
    secret_access_key = os.environ.get("AWS_SECRET_ACCESS_KEY")
    if not access_key_id or not secret_access_key:
        return None
    return access_key_id, secret_access_key


def _create_connection(
    factory: AWSConnectionFactory, args: argparse.Namespace, access_key_id: str, secret_access_key: str
) -> S3Connection:
    return factory.create_s3_connection(
        access_key_id,
        secret_access_key,
        endpoint_url=args.endpoint_url,
        region_name=args.region,
    )


def run_smoke_test(connection: S3Connection, bucket: str) -> None:
    """Run every operation once, printing the request ids.

    Raises:
        S3OperationException: If an operation failed.
        S3ConnectionFailedException: If the service could not be reached.

    """
    created = connection.create_bucket(bucket)
    print(f"Bucket {bucket} created successfully. RequestId: {created.request_id}")
    try:
        _run_object_operations(connection, bucket)
    except S3Exception:
        _remove_scratch_bucket(connection, bucket)
        raise

    removed = connection.delete_bucket(bucket)
    print(f"Bucket {bucket} deleted successfully. RequestId: {removed.request_id}")


def _remove_scratch_bucket(connection: S3Connection, bucket: str) -> None:
    """Remove the smoke object and bucket after a failure, keeping the original error."""
    try:
        connection.delete(bucket, SMOKE_KEY)
        connection.delete_bucket(bucket)
    except S3Exception:
        logger.warning("Could not remove scratch bucket %s", bucket, exc_info=True)
    else:
        print(f"Bucket {bucket} removed after failure.")


def _run_object_operations(connection: S3Connection, bucket: str) -> None:
    buckets = connection.list_all_buckets()
    print(f"Listed {len(buckets.buckets)} bucket(s). RequestId: {buckets.request_id}")

    put = connection.put_stream(bucket, SMOKE_KEY, io.BytesIO(SMOKE_BODY), "text/plain")
    print(f"Put {SMOKE_KEY} with etag {put.etag}. RequestId: {put.request_id}")

    got = connection.get(bucket, SMOKE_KEY)
    if got.body != SMOKE_BODY:
        msg = f"Body of {SMOKE_KEY} does not match what was put"
        raise S3GetFailedException(msg)
    print(f"Got {SMOKE_KEY} ({got.content_length} bytes). RequestId: {got.request_id}")

    unchanged = connection.get(bucket, SMOKE_KEY, old_etag=put.etag)
    print(f"Conditional get is_modified={unchanged.is_modified}. RequestId: {unchanged.request_id}")

    head = connection.head(bucket, SMOKE_KEY)
    print(f"Head {SMOKE_KEY} size={head.content_length}. RequestId: {head.request_id}")

    keys = list_all_keys(connection, bucket)
    print(f"Listed keys: {', '.join(keys)}")

    deleted = connection.delete(bucket, SMOKE_KEY)
    print(f"Deleted {SMOKE_KEY}. RequestId: {deleted.request_id}")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of `python -m awslib`."""
    args = _build_parser().parse_args(argv)
    ObservabilitySetupper().setup_logging(level=getattr(logging, args.log_level))

    factory = AWSConnectionFactory.get_instance()
    print(f"Testing awslib version {factory.get_version()}")

    credentials = _read_credentials()
    if credentials is None:
        print(
            "Environment variables (i.e. AWS_ACCESS_KEY or AWS_SECRET_ACCESS_KEY) not set",
            file=sys.stderr,
        )
        return EXIT_OPERATION_FAILED

    bucket = args.bucket or f"awslib-smoke-{uuid.uuid4().hex[:12]}"
    try:
        connection = _create_connection(factory, args, *credentials)
        run_smoke_test(connection, bucket)
    except S3ConnectionFailedException as e:
        print(e, file=sys.stderr)
        return EXIT_CONNECTION_FAILED
    except S3OperationException as e:
        print(f"Smoke test failed: {e}", file=sys.stderr)
        return EXIT_OPERATION_FAILED
    finally:
        factory.shutdown()

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
