"""Test the S3 connections against the shared contract."""

import io

import pytest

from awslib.s3.connections import (
    S3BucketCreateFailedException,
    S3BucketDeleteFailedException,
    S3Connection,
    S3GetFailedException,
    S3ListFailedException,
    S3PutFailedException,
)
from awslib.s3.connections.abstract import S3ErrorKind, S3ErrorReason
from awslib.s3.pagination import iterate_pages, list_all_keys
from tests.utils import UnseekableStream


def test_create_bucket(s3_connection: S3Connection, bucket_name: str) -> None:
    """Test that a created bucket is listed exactly once."""
    response = s3_connection.create_bucket(bucket_name)
    try:
        assert response.bucket == bucket_name
        assert response.request_id

        listed = s3_connection.list_all_buckets()
        assert listed.bucket_names.count(bucket_name) == 1
        assert listed.bucket_names == sorted(listed.bucket_names)
    finally:
        s3_connection.delete_bucket(bucket_name)


def test_create_bucket_twice(s3_connection: S3Connection, bucket: str) -> None:
    """Test that creating an existing bucket fails."""
    with pytest.raises(S3BucketCreateFailedException) as exc_info:
        s3_connection.create_bucket(bucket)

    assert exc_info.value.kind == S3ErrorKind.BUCKET_CREATE_FAILED
    assert exc_info.value.reason == S3ErrorReason.ALREADY_EXISTS


def test_create_bucket_empty_name(s3_connection: S3Connection) -> None:
    """Test that an empty bucket name is rejected."""
    with pytest.raises(S3BucketCreateFailedException) as exc_info:
        s3_connection.create_bucket("")

    assert exc_info.value.reason == S3ErrorReason.INVALID_BUCKET_NAME


def test_delete_bucket(s3_connection: S3Connection, bucket: str) -> None:
    """Test deleting an empty bucket."""
    response = s3_connection.delete_bucket(bucket)

    assert response.bucket == bucket
    assert bucket not in s3_connection.list_all_buckets().bucket_names


def test_delete_bucket_not_empty(s3_connection: S3Connection, bucket: str) -> None:
    """Test that a bucket with objects cannot be deleted."""
    s3_connection.put_bytes(bucket, "file.txt", b"data", "text/plain", 4)

    with pytest.raises(S3BucketDeleteFailedException) as exc_info:
        s3_connection.delete_bucket(bucket)

    assert exc_info.value.reason == S3ErrorReason.BUCKET_NOT_EMPTY


def test_delete_missing_bucket(s3_connection: S3Connection, bucket_name: str) -> None:
    """Test deleting a bucket that does not exist."""
    with pytest.raises(S3BucketDeleteFailedException) as exc_info:
        s3_connection.delete_bucket(bucket_name)

    assert exc_info.value.reason == S3ErrorReason.NO_SUCH_BUCKET


def test_put_get_head(s3_connection: S3Connection, bucket: str) -> None:
    """Test that get returns what was put and head reports its size."""
    body = b"Hello, World!"

    put = s3_connection.put_bytes(bucket, "dir/hello.txt", body, "text/plain", len(body))
    got = s3_connection.get(bucket, "dir/hello.txt")
    head = s3_connection.head(bucket, "dir/hello.txt")

    assert put.etag
    assert got.is_modified is True
    assert got.body == body
    assert got.etag == put.etag
    assert got.content_type == "text/plain"
    assert head.content_length == len(body)
    assert head.etag == put.etag


def test_put_stream(s3_connection: S3Connection, bucket: str) -> None:
    """Test putting a seekable stream without size."""
    s3_connection.put_stream(bucket, "stream.bin", io.BytesIO(b"\x00\x01\x02"), "application/octet-stream")

    assert s3_connection.get(bucket, "stream.bin").body == b"\x00\x01\x02"


def test_put_stream_unseekable(s3_connection: S3Connection, bucket: str) -> None:
    """Test that an unseekable stream without size fails and stores nothing."""
    with pytest.raises(S3PutFailedException) as exc_info:
        s3_connection.put_stream(bucket, "pipe.bin", UnseekableStream(b"data"), "text/plain")

    assert exc_info.value.reason == S3ErrorReason.UNSEEKABLE_STREAM
    assert s3_connection.list_bucket(bucket).keys == []


def test_put_stream_unseekable_with_size(s3_connection: S3Connection, bucket: str) -> None:
    """Test that an unseekable stream is accepted when its size is given."""
    s3_connection.put_stream(bucket, "pipe.bin", UnseekableStream(b"data"), "text/plain", size=4)

    assert s3_connection.get(bucket, "pipe.bin").body == b"data"


def test_put_overwrites(s3_connection: S3Connection, bucket: str) -> None:
    """Test that a second put replaces the object."""
    first = s3_connection.put_bytes(bucket, "key", b"first", "text/plain", 5)
    second = s3_connection.put_bytes(bucket, "key", b"second", "text/plain", 6)

    got = s3_connection.get(bucket, "key")
    assert got.body == b"second"
    assert got.etag == second.etag
    assert first.etag != second.etag


def test_put_missing_bucket(s3_connection: S3Connection, bucket_name: str) -> None:
    """Test putting into a bucket that does not exist."""
    with pytest.raises(S3PutFailedException) as exc_info:
        s3_connection.put_bytes(bucket_name, "key", b"x", "text/plain", 1)

    assert exc_info.value.reason == S3ErrorReason.NO_SUCH_BUCKET


def test_conditional_get(s3_connection: S3Connection, bucket: str) -> None:
    """Test that a get with the current etag is not modified and carries no body."""
    put = s3_connection.put_bytes(bucket, "key", b"content", "text/plain", 7)

    unchanged = s3_connection.get(bucket, "key", old_etag=put.etag)
    changed = s3_connection.get(bucket, "key", old_etag="0123456789abcdef0123456789abcdef")

    assert unchanged.is_modified is False
    assert unchanged.body is None
    assert changed.is_modified is True
    assert changed.body == b"content"
    assert changed.etag == put.etag


def test_delete_then_get(s3_connection: S3Connection, bucket: str) -> None:
    """Test that a deleted object is not found."""
    s3_connection.put_bytes(bucket, "key", b"x", "text/plain", 1)

    s3_connection.delete(bucket, "key")

    with pytest.raises(S3GetFailedException) as exc_info:
        s3_connection.get(bucket, "key")
    assert exc_info.value.kind == S3ErrorKind.GET_FAILED
    assert exc_info.value.reason == S3ErrorReason.NOT_FOUND


def test_delete_missing_key(s3_connection: S3Connection, bucket: str) -> None:
    """Test that deleting a key that does not exist succeeds."""
    response = s3_connection.delete(bucket, "missing")

    assert response.key == "missing"


def test_head_missing_key(s3_connection: S3Connection, bucket: str) -> None:
    """Test head of a key that does not exist."""
    with pytest.raises(S3GetFailedException) as exc_info:
        s3_connection.head(bucket, "missing")

    assert exc_info.value.reason == S3ErrorReason.NOT_FOUND


def test_list_bucket_pages(s3_connection: S3Connection, bucket: str) -> None:
    """Test that following markers visits every key exactly once."""
    keys = [f"key-{index:02d}" for index in range(7)]
    for key in keys:
        s3_connection.put_bytes(bucket, key, b"x", "text/plain", 1)

    first = s3_connection.list_bucket(bucket, max_keys=3)
    assert len(first.keys) == 3  # noqa: PLR2004
    assert first.is_truncated is True
    assert first.next_marker == "key-02"

    pages = list(iterate_pages(s3_connection, bucket, page_size=3))
    visited = [obj.key for page in pages for obj in page.keys]

    assert visited == keys
    assert all(len(page.keys) <= 3 for page in pages)  # noqa: PLR2004
    assert [page.is_truncated for page in pages] == [True, True, False]


def test_list_bucket_prefix(s3_connection: S3Connection, bucket: str) -> None:
    """Test listing only keys under a prefix."""
    for key in ["a/1", "a/2", "b/1"]:
        s3_connection.put_bytes(bucket, key, b"x", "text/plain", 1)

    assert list_all_keys(s3_connection, bucket, prefix="a/") == ["a/1", "a/2"]


def test_list_bucket_delimiter(s3_connection: S3Connection, bucket: str) -> None:
    """Test that a delimiter rolls keys up into common prefixes."""
    for key in ["index.html", "photos/2023/a.jpg", "photos/2023/b.jpg", "photos/2024/c.jpg"]:
        s3_connection.put_bytes(bucket, key, b"x", "text/plain", 1)

    root = s3_connection.list_bucket(bucket, delimiter="/")
    photos = s3_connection.list_bucket(bucket, prefix="photos/", delimiter="/")

    assert [obj.key for obj in root.keys] == ["index.html"]
    assert root.common_prefixes == ["photos/"]
    assert photos.keys == []
    assert photos.common_prefixes == ["photos/2023/", "photos/2024/"]


def test_list_bucket_invalid_max_keys(s3_connection: S3Connection, bucket: str) -> None:
    """Test that a non positive page size is rejected."""
    with pytest.raises(S3ListFailedException) as exc_info:
        s3_connection.list_bucket(bucket, max_keys=0)

    assert exc_info.value.reason == S3ErrorReason.INVALID_ARGUMENT


def test_list_missing_bucket(s3_connection: S3Connection, bucket_name: str) -> None:
    """Test listing a bucket that does not exist."""
    with pytest.raises(S3ListFailedException) as exc_info:
        s3_connection.list_bucket(bucket_name)

    assert exc_info.value.reason == S3ErrorReason.NO_SUCH_BUCKET
