"""Abstract S3 connection and its error taxonomy."""

from enum import StrEnum
from types import TracebackType
from typing import BinaryIO, ClassVar, Protocol, Self

from awslib.s3.connections.pydantic import (
    S3CreateBucketResponse,
    S3DeleteBucketResponse,
    S3DeleteResponse,
    S3GetResponse,
    S3HeadResponse,
    S3ListAllBucketsResponse,
    S3ListBucketResponse,
    S3PutResponse,
)

DEFAULT_MAX_KEYS = 1000


class S3ErrorKind(StrEnum):
    """Operation level failure kind."""

    BUCKET_CREATE_FAILED = "BUCKET_CREATE_FAILED"
    BUCKET_DELETE_FAILED = "BUCKET_DELETE_FAILED"
    LIST_FAILED = "LIST_FAILED"
    PUT_FAILED = "PUT_FAILED"
    GET_FAILED = "GET_FAILED"
    DELETE_FAILED = "DELETE_FAILED"
    CONNECTION_FAILED = "CONNECTION_FAILED"


class S3ErrorReason(StrEnum):
    """Why an operation failed."""

    NOT_FOUND = "NOT_FOUND"
    NO_SUCH_BUCKET = "NO_SUCH_BUCKET"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    INVALID_BUCKET_NAME = "INVALID_BUCKET_NAME"
    BUCKET_NOT_EMPTY = "BUCKET_NOT_EMPTY"
    ACCESS_DENIED = "ACCESS_DENIED"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    UNSEEKABLE_STREAM = "UNSEEKABLE_STREAM"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    SERVICE_ERROR = "SERVICE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"


class S3Exception(Exception):
    """Base exception for S3 connection errors.

    Attributes:
        kind: The failure kind. Callers may branch on it instead of on the exception class.
        reason: A finer grained reason of the failure.
        request_id: The request id reported by the service, if a response was obtained.
        code: The raw error code reported by the service, if any.

    """

    kind: ClassVar[S3ErrorKind]

    def __init__(
        self,
        message: str,
        reason: S3ErrorReason = S3ErrorReason.SERVICE_ERROR,
        request_id: str | None = None,
        code: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human readable description of the failure.
            reason: A finer grained reason of the failure.
            request_id: The request id reported by the service.
            code: The raw error code reported by the service.

        """
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.request_id = request_id
        self.code = code

    def __str__(self) -> str:
        """Return the message with kind and reason."""
        return f"{self.kind}/{self.reason}: {self.message}"


class S3ConnectionFailedException(S3Exception):
    """Raised when no response could be obtained from the service."""

    kind = S3ErrorKind.CONNECTION_FAILED

    def __init__(self, message: str, reason: S3ErrorReason = S3ErrorReason.CONNECTION_ERROR) -> None:
        """Initialize the exception."""
        super().__init__(message, reason=reason)


class S3OperationException(S3Exception):
    """Raised when the service was reached but the operation failed."""


class S3BucketCreateFailedException(S3OperationException):
    """Raised when a bucket could not be created."""

    kind = S3ErrorKind.BUCKET_CREATE_FAILED


class S3BucketDeleteFailedException(S3OperationException):
    """Raised when a bucket could not be deleted."""

    kind = S3ErrorKind.BUCKET_DELETE_FAILED


class S3ListFailedException(S3OperationException):
    """Raised when buckets or bucket contents could not be listed."""

    kind = S3ErrorKind.LIST_FAILED


class S3PutFailedException(S3OperationException):
    """Raised when an object could not be stored."""

    kind = S3ErrorKind.PUT_FAILED


class S3GetFailedException(S3OperationException):
    """Raised when an object or its metadata could not be retrieved."""

    kind = S3ErrorKind.GET_FAILED


class S3DeleteFailedException(S3OperationException):
    """Raised when an object could not be deleted."""

    kind = S3ErrorKind.DELETE_FAILED


def normalize_etag(etag: str | None) -> str | None:
    """Strip the surrounding quotes S3 puts around etags."""
    if etag is None:
        return None
    return etag.strip().strip('"')


class S3Connection(Protocol):
    """Abstract S3 connection. Maps bucket and object operations onto the S3 REST API.

    Every call is synchronous and independent. A connection is bound to one
    credential pair and must be closed (or used as a context manager) to release
    its transport resources.

    """

    def __enter__(self) -> Self:
        """Enter the context manager."""
        ...

    def __exit__(
        self, exc_type: type[BaseException] | None, exc_value: BaseException | None, traceback: TracebackType | None
    ) -> None:
        """Exit the context manager and close the connection."""
        ...

    def close(self) -> None:
        """Release the transport resources held by the connection."""
        ...

    def create_bucket(self, bucket: str) -> S3CreateBucketResponse:
        """Create a bucket.

        Args:
            bucket: The name of the bucket to create. Must be non-empty and unique
                within the target namespace.

        Returns:
            A response containing the bucket name and its location.

        Raises:
            S3BucketCreateFailedException: If the name is taken or invalid.
            S3ConnectionFailedException: If no response could be obtained.

        """
        ...

    def list_all_buckets(self) -> S3ListAllBucketsResponse:
        """List all buckets owned by the caller's account.

        Returns:
            A response containing the buckets ordered by name.

        Raises:
            S3ListFailedException: If the buckets could not be listed.
            S3ConnectionFailedException: If no response could be obtained.

        """
        ...

    def delete_bucket(self, bucket: str) -> S3DeleteBucketResponse:
        """Delete a bucket.

        Args:
            bucket: The name of the bucket to delete. The bucket must be empty.

        Returns:
            A response confirming the deletion.

        Raises:
            S3BucketDeleteFailedException: If the bucket does not exist or is not empty.
            S3ConnectionFailedException: If no response could be obtained.

        """
        ...

    def list_bucket(
        self,
        bucket: str,
        prefix: str = "",
        marker: str = "",
        max_keys: int = DEFAULT_MAX_KEYS,
        delimiter: str | None = None,
    ) -> S3ListBucketResponse:
        """List the objects of a bucket, one page at a time.

        Only keys lexically after `marker` are returned. When the page is truncated,
        `next_marker` of the response resumes the listing strictly after the last
        returned entry.

        Args:
            bucket: The name of the bucket.
            prefix: Only keys starting with this prefix are returned.
            marker: Key to start after. An empty string starts from the beginning.
            max_keys: Maximum number of entries (keys and common prefixes) to return. Must be positive.
            delimiter: Keys sharing the substring between `prefix` and the first occurrence
                of the delimiter are rolled up into a single common prefix entry.

        Returns:
            A response containing the page of keys and common prefixes.

        Raises:
            S3ListFailedException: If `max_keys` is not positive or the bucket could not be listed.
            S3ConnectionFailedException: If no response could be obtained.

        """
        ...

    def put_stream(
        self,
        bucket: str,
        key: str,
        stream: BinaryIO,
        content_type: str,
        size: int = -1,
    ) -> S3PutResponse:
        """Store an object read from a binary stream.

        The stream is read once. If `size` is -1, the length is probed by seeking to
        the end of the stream, which fails for unseekable streams before anything is read.

        Args:
            bucket: The name of the bucket to store the object in.
            key: The key to store the object with.
            stream: The object data.
            content_type: The content type of the object.
            size: Number of bytes to read from the stream, or -1 to probe it.

        Returns:
            A response containing the assigned etag.

        Raises:
            S3PutFailedException: If the stream is unusable or the object could not be stored.
            S3ConnectionFailedException: If no response could be obtained.

        """
        ...

    def put_bytes(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str,
        size: int,
    ) -> S3PutResponse:
        """Store an object given as a byte buffer.

        Args:
            bucket: The name of the bucket to store the object in.
            key: The key to store the object with.
            data: The object data.
            content_type: The content type of the object.
            size: The size of the object. Must equal `len(data)`.

        Returns:
            A response containing the assigned etag.

        Raises:
            S3PutFailedException: If `size` does not match or the object could not be stored.
            S3ConnectionFailedException: If no response could be obtained.

        """
        ...

    def get(self, bucket: str, key: str, old_etag: str | None = None) -> S3GetResponse:
        """Retrieve an object.

        Args:
            bucket: The name of the bucket the object is stored in.
            key: The key of the object.
            old_etag: If given, the body is only retrieved when the stored etag differs.
                Otherwise the response has `is_modified=False` and no body.

        Returns:
            A response containing the body and metadata of the object.

        Raises:
            S3GetFailedException: If the object could not be retrieved.
            S3ConnectionFailedException: If no response could be obtained.

        """
        ...

    def delete(self, bucket: str, key: str) -> S3DeleteResponse:
        """Delete an object.

        Args:
            bucket: The name of the bucket the object is stored in.
            key: The key of the object.

        Returns:
            A response confirming the deletion.

        Raises:
            S3DeleteFailedException: If the object could not be deleted.
            S3ConnectionFailedException: If no response could be obtained.

        """
        ...

    def head(self, bucket: str, key: str) -> S3HeadResponse:
        """Retrieve the metadata of an object without its body.

        Args:
            bucket: The name of the bucket the object is stored in.
            key: The key of the object.

        Returns:
            A response containing the metadata of the object.

        Raises:
            S3GetFailedException: If the object does not exist or its metadata could not be retrieved.
            S3ConnectionFailedException: If no response could be obtained.

        """
        ...
