"""Listing helpers that follow continuation markers across pages."""

import logging
from collections.abc import Iterator

from awslib.s3.connections.abstract import DEFAULT_MAX_KEYS, S3Connection, S3ErrorReason, S3ListFailedException
from awslib.s3.connections.pydantic import S3ListBucketResponse, S3Object

logger = logging.getLogger(__name__)


def _advances(marker: str, next_marker: str | None) -> bool:
    """Whether a continuation marker moves the listing forward.

    A common prefix containing the current marker also advances: it skips the
    rest of its group although it sorts before the marker.
    """
    if not next_marker or next_marker == marker:
        return False
    return next_marker > marker or marker.startswith(next_marker)


def iterate_pages(
    connection: S3Connection,
    bucket: str,
    prefix: str = "",
    delimiter: str | None = None,
    page_size: int = DEFAULT_MAX_KEYS,
    marker: str = "",
) -> Iterator[S3ListBucketResponse]:
    """Yield listing pages until one is not truncated.

    Args:
        connection: The connection to list with.
        bucket: The name of the bucket.
        prefix: Only keys starting with this prefix are listed.
        delimiter: Delimiter to roll keys up into common prefixes.
        page_size: `max_keys` of every page.
        marker: Key to start after.

    Raises:
        S3ListFailedException: If a page could not be listed, or a truncated page did not
            advance the marker.
        S3ConnectionFailedException: If no response could be obtained.

    """
    while True:
        page = connection.list_bucket(bucket, prefix=prefix, marker=marker, max_keys=page_size, delimiter=delimiter)
        yield page
        if not page.is_truncated:
            return
        if not _advances(marker, page.next_marker):
            msg = f"Listing of bucket {bucket} did not advance past marker {marker!r}"
            raise S3ListFailedException(msg, reason=S3ErrorReason.SERVICE_ERROR)
        logger.debug("Continuing listing of bucket %s after %s", bucket, page.next_marker)
        marker = page.next_marker


def iterate_bucket(
    connection: S3Connection,
    bucket: str,
    prefix: str = "",
    delimiter: str | None = None,
    page_size: int = DEFAULT_MAX_KEYS,
) -> Iterator[S3Object | str]:
    """Yield every entry of a bucket in key order.

    Object entries are yielded as `S3Object`, common prefixes (only when a delimiter
    is given) as `str`.
    """
    for page in iterate_pages(connection, bucket, prefix=prefix, delimiter=delimiter, page_size=page_size):
        entries: list[S3Object | str] = [*page.keys, *page.common_prefixes]
        entries.sort(key=lambda entry: entry if isinstance(entry, str) else entry.key)
        yield from entries


def list_all_keys(connection: S3Connection, bucket: str, prefix: str = "", page_size: int = DEFAULT_MAX_KEYS) -> list[str]:
    """Return every key of a bucket starting with `prefix`."""
    return [
        entry.key
        for entry in iterate_bucket(connection, bucket, prefix=prefix, page_size=page_size)
        if isinstance(entry, S3Object)
    ]
