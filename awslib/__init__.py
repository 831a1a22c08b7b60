"""Synchronous S3 client with typed responses."""

__version__ = "0.1.0"
