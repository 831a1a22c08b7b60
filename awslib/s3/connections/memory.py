"""In-memory S3 connection.

Keeps buckets and objects in process memory and follows the S3 semantics of the
operations it implements. It is meant for tests and local development and satisfies
the same `S3Connection` protocol as `Boto3S3Connection`.
"""

import hashlib
import logging
import re
import threading
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import TracebackType
from typing import BinaryIO, Self

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

DEFAULT_CONTENT_TYPE = "binary/octet-stream"

_BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")


@dataclass(frozen=True)
class _StoredObject:
    data: bytes
    etag: str
    content_type: str
    last_modified: datetime


@dataclass
class _StoredBucket:
    creation_date: datetime
    objects: dict[str, _StoredObject] = field(default_factory=dict)


def _new_request_id() -> str:
    return uuid.uuid4().hex.upper()[:16]


class InMemoryS3Connection:
    """In-memory S3 connection.

    All operations are guarded by a lock, so the connection may be shared between threads.
    Setting `offline` makes every operation fail with `S3ConnectionFailedException`,
    which simulates an unreachable service.
    """

    def __init__(self, owner_id: str = "in-memory", offline: bool = False) -> None:
        """Initialize the connection.

        Args:
            owner_id: The owner id reported by `list_all_buckets`.
            offline: Whether the simulated service is unreachable.

        """
        self._owner = S3Owner(id=owner_id, display_name=owner_id)
        self._buckets: dict[str, _StoredBucket] = {}
        self._lock = threading.Lock()
        self.offline = offline
        self._closed = False

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
        """Mark the connection as closed. The stored data is kept."""
        self._closed = True

    def _check_online(self) -> None:
        if self.offline:
            msg = "Simulated service is unreachable"
            raise S3ConnectionFailedException(msg)

    def _get_bucket(self, bucket: str, exception_class: type[S3OperationException]) -> _StoredBucket:
        stored = self._buckets.get(bucket)
        if stored is None:
            msg = f"The specified bucket does not exist: {bucket}"
            raise exception_class(
                msg, reason=S3ErrorReason.NO_SUCH_BUCKET, request_id=_new_request_id(), code="NoSuchBucket"
            )
        return stored

    def _get_object(self, bucket: str, key: str) -> _StoredObject:
        stored = self._get_bucket(bucket, S3GetFailedException).objects.get(key)
        if stored is None:
            msg = f"The specified key does not exist: {key}"
            raise S3GetFailedException(
                msg, reason=S3ErrorReason.NOT_FOUND, request_id=_new_request_id(), code="NoSuchKey"
            )
        return stored

    def create_bucket(self, bucket: str) -> S3CreateBucketResponse:
        """Create a bucket."""
        check_bucket_name(bucket)
        if not _BUCKET_NAME_PATTERN.match(bucket) or ".." in bucket:
            msg = f"The specified bucket is not valid: {bucket}"
            raise S3BucketCreateFailedException(
                msg, reason=S3ErrorReason.INVALID_BUCKET_NAME, request_id=_new_request_id(), code="InvalidBucketName"
            )
        with self._lock:
            self._check_online()
            if bucket in self._buckets:
                msg = f"The requested bucket name is not available: {bucket}"
                raise S3BucketCreateFailedException(
                    msg,
                    reason=S3ErrorReason.ALREADY_EXISTS,
                    request_id=_new_request_id(),
                    code="BucketAlreadyOwnedByYou",
                )
            self._buckets[bucket] = _StoredBucket(creation_date=datetime.now(UTC))
        logger.debug("Created in-memory bucket %s", bucket)
        return S3CreateBucketResponse(request_id=_new_request_id(), bucket=bucket, location=f"/{bucket}")

    def list_all_buckets(self) -> S3ListAllBucketsResponse:
        """List all buckets ordered by name."""
        with self._lock:
            self._check_online()
            buckets = [
                S3Bucket(name=name, creation_date=stored.creation_date)
                for name, stored in sorted(self._buckets.items())
            ]
        return S3ListAllBucketsResponse(request_id=_new_request_id(), buckets=buckets, owner=self._owner)

    def delete_bucket(self, bucket: str) -> S3DeleteBucketResponse:
        """Delete an empty bucket."""
        with self._lock:
            self._check_online()
            stored = self._get_bucket(bucket, S3BucketDeleteFailedException)
            if stored.objects:
                msg = f"The bucket you tried to delete is not empty: {bucket}"
                raise S3BucketDeleteFailedException(
                    msg, reason=S3ErrorReason.BUCKET_NOT_EMPTY, request_id=_new_request_id(), code="BucketNotEmpty"
                )
            del self._buckets[bucket]
        logger.debug("Deleted in-memory bucket %s", bucket)
        return S3DeleteBucketResponse(request_id=_new_request_id(), bucket=bucket)

    def list_bucket(
        self,
        bucket: str,
        prefix: str = "",
        marker: str = "",
        max_keys: int = DEFAULT_MAX_KEYS,
        delimiter: str | None = None,
    ) -> S3ListBucketResponse:
        """List the objects of a bucket, one page at a time.

        Keys and common prefixes form a single ordered sequence of entries. Only
        keys sorting after `marker` are listed or rolled up. A common prefix used as
        the marker skips every key under it, while a key marker inside a group still
        reports the group for its remaining keys.
        """
        check_max_keys(max_keys)
        with self._lock:
            self._check_online()
            objects = dict(self._get_bucket(bucket, S3ListFailedException).objects)

        entries: list[tuple[str, S3Object | None]] = []
        seen_prefixes: set[str] = set()
        for key in sorted(key for key in objects if key.startswith(prefix) and key > marker):
            if delimiter:
                index = key.find(delimiter, len(prefix))
                if index != -1:
                    common_prefix = key[: index + len(delimiter)]
                    if common_prefix not in seen_prefixes and common_prefix != marker:
                        entries.append((common_prefix, None))
                    seen_prefixes.add(common_prefix)
                    continue
            stored = objects[key]
            entries.append(
                (
                    key,
                    S3Object(
                        key=key,
                        size=len(stored.data),
                        etag=stored.etag,
                        last_modified=stored.last_modified,
                        storage_class="STANDARD",
                    ),
                )
            )

        page = entries[:max_keys]
        is_truncated = len(entries) > max_keys

        return S3ListBucketResponse(
            request_id=_new_request_id(),
            bucket=bucket,
            prefix=prefix,
            marker=marker,
            delimiter=delimiter,
            max_keys=max_keys,
            is_truncated=is_truncated,
            next_marker=page[-1][0] if is_truncated else None,
            keys=[obj for _, obj in page if obj is not None],
            common_prefixes=[name for name, obj in page if obj is None],
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
        return self._put(bucket, key, bytes(data), content_type)

    def _put(self, bucket: str, key: str, data: bytes, content_type: str) -> S3PutResponse:
        if not key:
            msg = "Object key must not be empty"
            raise S3PutFailedException(msg, reason=S3ErrorReason.INVALID_ARGUMENT)
        stored = _StoredObject(
            data=data,
            etag=hashlib.md5(data, usedforsecurity=False).hexdigest(),
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            last_modified=datetime.now(UTC),
        )
        with self._lock:
            self._check_online()
            self._get_bucket(bucket, S3PutFailedException).objects[key] = stored
        logger.debug("Stored in-memory object %s/%s (%d bytes)", bucket, key, len(data))
        return S3PutResponse(request_id=_new_request_id(), bucket=bucket, key=key, etag=stored.etag)

    def get(self, bucket: str, key: str, old_etag: str | None = None) -> S3GetResponse:
        """Retrieve an object, optionally only if its etag changed."""
        with self._lock:
            self._check_online()
            stored = self._get_object(bucket, key)

        if old_etag and normalize_etag(old_etag) == stored.etag:
            return S3GetResponse(
                request_id=_new_request_id(),
                bucket=bucket,
                key=key,
                is_modified=False,
                etag=stored.etag,
            )
        return S3GetResponse(
            request_id=_new_request_id(),
            bucket=bucket,
            key=key,
            is_modified=True,
            body=stored.data,
            etag=stored.etag,
            content_type=stored.content_type,
            content_length=len(stored.data),
            last_modified=stored.last_modified,
        )

    def delete(self, bucket: str, key: str) -> S3DeleteResponse:
        """Delete an object. Deleting a missing key succeeds, as it does on S3."""
        with self._lock:
            self._check_online()
            self._get_bucket(bucket, S3DeleteFailedException).objects.pop(key, None)
        logger.debug("Deleted in-memory object %s/%s", bucket, key)
        return S3DeleteResponse(request_id=_new_request_id(), bucket=bucket, key=key)

    def head(self, bucket: str, key: str) -> S3HeadResponse:
        """Retrieve the metadata of an object."""
        with self._lock:
            self._check_online()
            stored = self._get_object(bucket, key)
        return S3HeadResponse(
            request_id=_new_request_id(),
            bucket=bucket,
            key=key,
            etag=stored.etag,
            content_type=stored.content_type,
            content_length=len(stored.data),
            last_modified=stored.last_modified,
        )
