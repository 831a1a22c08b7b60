"""Conftest for S3 tests."""

import contextlib
import os
import uuid
from collections.abc import Generator

import pytest

from awslib.configs.s3 import S3Config
from awslib.s3.connections import Boto3S3Connection, InMemoryS3Connection, S3Connection
from awslib.s3.connections.abstract import S3Exception
from awslib.s3.pagination import list_all_keys

LIVE_ENDPOINT_ENV = "AWSLIB_TEST_ENDPOINT_URL"


@pytest.fixture(params=["memory", pytest.param("boto3", marks=pytest.mark.live)])
def s3_connection(request: pytest.FixtureRequest) -> Generator[S3Connection]:
    """Fixture for S3 connection implementations.

    The boto3 connection runs against the endpoint in `AWSLIB_TEST_ENDPOINT_URL`
    (e.g. a local MinIO server) and is skipped when it is not set.

    Args:
        request: Pytest request fixture.

    Returns:
        S3 connection implementation (memory or boto3).

    """
    if request.param == "memory":
        with InMemoryS3Connection() as connection:
            yield connection
        return

    endpoint_url = os.environ.get(LIVE_ENDPOINT_ENV)
    if not endpoint_url:
        pytest.skip(f"{LIVE_ENDPOINT_ENV} is not set")
    config = S3Config(endpoint_url=endpoint_url, addressing_style="path")  # type: ignore[call-arg]
    with Boto3S3Connection.from_config(config) as connection:
        yield connection


@pytest.fixture
def bucket_name() -> str:
    """Unique bucket name."""
    return f"awslib-test-{uuid.uuid4().hex[:12]}"


@pytest.fixture
def bucket(s3_connection: S3Connection, bucket_name: str) -> Generator[str]:
    """Create an empty bucket and remove it with its objects afterwards."""
    s3_connection.create_bucket(bucket_name)
    yield bucket_name
    # The test may have removed the bucket itself.
    with contextlib.suppress(S3Exception):
        for key in list_all_keys(s3_connection, bucket_name):
            s3_connection.delete(bucket_name, key)
        s3_connection.delete_bucket(bucket_name)
