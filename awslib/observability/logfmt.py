"""Logfmt log formatter."""

import logging
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord has. Anything else was passed through `extra=`.
_RESERVED_ATTRIBUTES = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__.keys() | {"message", "asctime"}
)


def _format_value(value: Any) -> str:
    text = str(value)
    if text == "" or any(char in text for char in ' ="\\\n'):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    return text


class LogfmtFormatter(logging.Formatter):
    """Formats log records as logfmt lines.

    Example:
        ```
        ts=2025-01-01T00:00:00.000000+00:00 level=info logger=awslib.s3 msg="S3 put bucket=a key=b"
        ```

    Attributes passed through `extra=` are appended as additional fields.

    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the record."""
        fields: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for name, value in record.__dict__.items():
            if name not in _RESERVED_ATTRIBUTES and not name.startswith("_"):
                fields[name] = value
        if record.exc_info:
            fields["exc_info"] = self.formatException(record.exc_info)
        return " ".join(f"{name}={_format_value(value)}" for name, value in fields.items())
