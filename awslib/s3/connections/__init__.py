"""S3 connections."""

from awslib.s3.connections.abstract import (
    S3BucketCreateFailedException,
    S3BucketDeleteFailedException,
    S3Connection,
    S3ConnectionFailedException,
    S3DeleteFailedException,
    S3ErrorKind,
    S3ErrorReason,
    S3Exception,
    S3GetFailedException,
    S3ListFailedException,
    S3OperationException,
    S3PutFailedException,
)
from awslib.s3.connections.boto3 import Boto3S3Connection
from awslib.s3.connections.memory import InMemoryS3Connection

__all__ = [
    "Boto3S3Connection",
    "InMemoryS3Connection",
    "S3BucketCreateFailedException",
    "S3BucketDeleteFailedException",
    "S3Connection",
    "S3ConnectionFailedException",
    "S3DeleteFailedException",
    "S3ErrorKind",
    "S3ErrorReason",
    "S3Exception",
    "S3GetFailedException",
    "S3ListFailedException",
    "S3OperationException",
    "S3PutFailedException",
]
