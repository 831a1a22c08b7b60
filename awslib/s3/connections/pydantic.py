"""Pydantic S3 connection response models.

Every operation of `S3Connection` returns its own response model. The models are
frozen: a response is created once by the connection and never mutated after.
Object metadata is exposed as a read-only mapping.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from types import MappingProxyType
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer


def _freeze_metadata(value: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(value))


def _dump_metadata(value: Mapping[str, str]) -> dict[str, str]:
    return dict(value)


Metadata = Annotated[Mapping[str, str], AfterValidator(_freeze_metadata), PlainSerializer(_dump_metadata)]


class S3BaseModel(BaseModel):
    """Base for all S3 value objects."""

    model_config = ConfigDict(frozen=True)


class S3BaseResponse(S3BaseModel):
    """Base for all S3 responses."""

    request_id: str | None = None


class S3Owner(S3BaseModel):
    """S3 owner."""

    id: str | None = None
    display_name: str | None = None


class S3Bucket(S3BaseModel):
    """S3 bucket."""

    name: str
    creation_date: datetime | None = None


class S3Object(S3BaseModel):
    """S3 object entry of a bucket listing."""

    key: str
    size: int = 0
    etag: str | None = None
    last_modified: datetime | None = None
    storage_class: str | None = None


class S3CreateBucketResponse(S3BaseResponse):
    """S3 create bucket response."""

    bucket: str
    location: str | None = None


class S3ListAllBucketsResponse(S3BaseResponse):
    """S3 list all buckets response.

    Buckets are ordered by name.
    """

    buckets: Sequence[S3Bucket] = Field(default_factory=tuple)
    owner: S3Owner | None = None

    @property
    def bucket_names(self) -> list[str]:
        """Names of the listed buckets."""
        return [bucket.name for bucket in self.buckets]


class S3DeleteBucketResponse(S3BaseResponse):
    """S3 delete bucket response."""

    bucket: str


class S3ListBucketResponse(S3BaseResponse):
    """S3 list bucket response.

    Attributes:
        bucket: The name of the listed bucket.
        prefix: The prefix the listing was restricted to.
        marker: The marker the listing started after.
        delimiter: The delimiter used to roll keys up into common prefixes, if any.
        max_keys: The page size the listing was requested with.
        is_truncated: Whether more entries exist after this page.
        next_marker: The marker to pass to the next call when the page is truncated.
        keys: The object entries of this page, in key order.
        common_prefixes: The rolled up common prefixes of this page, in order.

    """

    bucket: str
    prefix: str = ""
    marker: str = ""
    delimiter: str | None = None
    max_keys: int
    is_truncated: bool = False
    next_marker: str | None = None
    keys: Sequence[S3Object] = Field(default_factory=tuple)
    common_prefixes: Sequence[str] = Field(default_factory=tuple)


class S3PutResponse(S3BaseResponse):
    """S3 put response."""

    bucket: str
    key: str
    etag: str | None = None
    version_id: str | None = None


class S3GetResponse(S3BaseResponse):
    """S3 get response.

    A conditional get whose etag still matches the stored object returns
    `is_modified=False` and no body.
    """

    bucket: str
    key: str
    is_modified: bool = True
    body: bytes | None = None
    etag: str | None = None
    content_type: str | None = None
    content_length: int | None = None
    last_modified: datetime | None = None
    metadata: Metadata = Field(default_factory=dict, validate_default=True)


class S3DeleteResponse(S3BaseResponse):
    """S3 delete response."""

    bucket: str
    key: str
    delete_marker: bool | None = None
    version_id: str | None = None


class S3HeadResponse(S3BaseResponse):
    """S3 head response."""

    bucket: str
    key: str
    etag: str | None = None
    content_type: str | None = None
    content_length: int | None = None
    last_modified: datetime | None = None
    metadata: Metadata = Field(default_factory=dict, validate_default=True)
