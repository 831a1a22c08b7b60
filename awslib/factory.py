"""Connection factory."""

import logging
import threading
from typing import Any, ClassVar, Self

from awslib import __version__
from awslib.configs.s3 import S3Config
from awslib.s3.connections.boto3 import Boto3S3Connection

logger = logging.getLogger(__name__)


class AWSConnectionFactory:
    """Creates S3 connections and closes them on shutdown.

    Example:
        ```python
        factory = AWSConnectionFactory.get_instance()
        connection = factory.create_s3_connection(access_key_id, secret_access_key)
        try:
            connection.create_bucket("my-bucket")
        finally:
            factory.shutdown()
        ```

    """

    _instance: ClassVar["AWSConnectionFactory | None"] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        """Initialize the factory."""
        self._connections: list[Boto3S3Connection] = []
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> Self:
        """Get the process-wide factory."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance  # type: ignore[return-value]

    @staticmethod
    def get_version() -> str:
        """Get the library version."""
        return __version__

    @property
    def open_connections(self) -> int:
        """Number of created connections that have not been closed."""
        with self._lock:
            return sum(1 for connection in self._connections if not connection.closed)

    def create_s3_connection(self, access_key_id: str, secret_access_key: str, **options: Any) -> Boto3S3Connection:
        """Create a connection bound to one credential pair.

        Args:
            access_key_id: AWS access key ID.
            secret_access_key: AWS secret access key.
            **options: Further keyword arguments of `Boto3S3Connection`.

        Raises:
            ValueError: If a credential is empty.

        """
        if not access_key_id or not secret_access_key:
            msg = "Both access key id and secret access key are required"
            raise ValueError(msg)
        connection = Boto3S3Connection(
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            **options,
        )
        return self._track(connection)

    def create_s3_connection_from_config(self, config: S3Config) -> Boto3S3Connection:
        """Create a connection from an S3 config."""
        return self._track(Boto3S3Connection.from_config(config))

    def _track(self, connection: Boto3S3Connection) -> Boto3S3Connection:
        with self._lock:
            self._connections = [tracked for tracked in self._connections if not tracked.closed]
            self._connections.append(connection)
        logger.debug("Created S3 connection for access key %s", connection.access_key_id)
        return connection

    def shutdown(self) -> None:
        """Close every connection created by the factory."""
        with self._lock:
            connections, self._connections = self._connections, []
        for connection in connections:
            connection.close()
        logger.info("Connection factory shut down, closed %d connection(s)", len(connections))
