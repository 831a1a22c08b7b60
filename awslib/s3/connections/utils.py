"""Argument checks shared by S3 connections.

They run before any remote call, so a rejected call never transfers data.
"""

import io
from typing import BinaryIO

from awslib.s3.connections.abstract import (
    S3BucketCreateFailedException,
    S3ErrorReason,
    S3ListFailedException,
    S3PutFailedException,
)


def check_bucket_name(bucket: str) -> None:
    """Reject empty bucket names."""
    if not bucket:
        msg = "Bucket name must not be empty"
        raise S3BucketCreateFailedException(msg, reason=S3ErrorReason.INVALID_BUCKET_NAME)


def check_max_keys(max_keys: int) -> None:
    """Reject non positive page sizes."""
    if max_keys <= 0:
        msg = f"max_keys must be positive, got {max_keys}"
        raise S3ListFailedException(msg, reason=S3ErrorReason.INVALID_ARGUMENT)


def check_bytes_size(data: bytes, size: int) -> None:
    """Require the declared size of a byte buffer to match its length."""
    if size != len(data):
        msg = f"Declared size {size} does not match buffer length {len(data)}"
        raise S3PutFailedException(msg, reason=S3ErrorReason.INVALID_ARGUMENT)


def probe_stream_size(stream: BinaryIO) -> int:
    """Return the number of bytes left in a seekable stream.

    The stream position is restored afterwards.

    Raises:
        S3PutFailedException: If the stream is not seekable.

    """
    seekable = getattr(stream, "seekable", None)
    if seekable is None or not seekable():
        msg = "Stream is not seekable, its size must be given explicitly"
        raise S3PutFailedException(msg, reason=S3ErrorReason.UNSEEKABLE_STREAM)
    try:
        position = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(position)
    except OSError as e:
        msg = f"Could not determine stream size: {e}"
        raise S3PutFailedException(msg, reason=S3ErrorReason.UNSEEKABLE_STREAM) from e
    return end - position


def read_stream(stream: BinaryIO, size: int = -1) -> bytes:
    """Read exactly `size` bytes from a stream, probing the size if it is -1.

    Raises:
        S3PutFailedException: If the stream is unseekable with `size=-1`, the size is
            invalid, or the stream ends before `size` bytes were read.

    """
    if size == -1:
        size = probe_stream_size(stream)
    elif size < 0:
        msg = f"Size must be -1 or non negative, got {size}"
        raise S3PutFailedException(msg, reason=S3ErrorReason.INVALID_ARGUMENT)

    chunks: list[bytes] = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)

    if remaining:
        msg = f"Stream ended after {size - remaining} of {size} bytes"
        raise S3PutFailedException(msg, reason=S3ErrorReason.INVALID_ARGUMENT)
    return b"".join(chunks)
