"""Utils for tests."""

import io


class UnseekableStream(io.RawIOBase):
    """Readable stream that cannot seek, like a pipe or a socket."""

    def __init__(self, data: bytes) -> None:
        """Initialize the stream."""
        super().__init__()
        self._buffer = io.BytesIO(data)
        self.bytes_read = 0

    def readable(self) -> bool:
        """Return whether the stream is readable."""
        return True

    def seekable(self) -> bool:
        """Return whether the stream is seekable."""
        return False

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        """Read into a buffer."""
        data = self._buffer.read(len(buffer))
        buffer[: len(data)] = data
        self.bytes_read += len(data)
        return len(data)
