"""
Structured logging with key=value and JSON output support.

Wraps the standard library ``logging`` module so that every log call is an
event name plus keyword fields. Two output formats are supported:
human-readable key=value pairs (default) and one JSON object per line.

The [StructuredFormatter][bangerbot.core.logger.StructuredFormatter] reads
the ``structured_kv`` extra field attached by
[Logger][bangerbot.core.logger.Logger]. Installed on the root handler, it
gives plain ``logging.getLogger()`` calls from the utils layer the same
``level name message`` prefix.

Examples:
    ```python
    from bangerbot.core.logger import Logger

    logger = Logger("tracker")
    logger.info("relay_connected", url="wss://nos.lol", connected=2)
    # Output: info tracker relay_connected url=wss://nos.lol connected=2

    relay_logger = logger.bind(url="wss://nos.lol")
    relay_logger.warning("relay_disconnected")
    # Output: warning tracker relay_disconnected url=wss://nos.lol
    ```
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, ClassVar


_TRUNCATION_MARKER = "...<truncated {} chars>"


def _truncate(value: str, max_value_length: int | None) -> str:
    if max_value_length and len(value) > max_value_length:
        return value[:max_value_length] + _TRUNCATION_MARKER.format(len(value) - max_value_length)
    return value


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = 1000,
    prefix: str = " ",
) -> str:
    """Format a dictionary as space-separated key=value pairs.

    Values are truncated to ``max_value_length`` characters. Empty values
    and values containing whitespace, equals signs, or quotes are escaped
    and wrapped in double quotes.

    Args:
        kwargs: Key-value pairs to format.
        max_value_length: Maximum characters per value before truncation.
            Pass None to disable truncation.
        prefix: String prepended to the output (default: single space).

    Returns:
        Formatted string, e.g. ``' url=wss://nos.lol note="hello world"'``,
        or an empty string if *kwargs* is empty.
    """
    if not kwargs:
        return ""

    parts = []
    for key, value in kwargs.items():
        text = _truncate(str(value), max_value_length)
        if not text or any(ch in text for ch in ' ="\'\n\t'):
            escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
            parts.append(f'{key}="{escaped}"')
        else:
            parts.append(f"{key}={text}")
    return prefix + " ".join(parts)


class StructuredFormatter(logging.Formatter):
    """Formats all log records as ``level name message key=value...``."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        extra: dict[str, Any] = getattr(record, "structured_kv", {})
        if extra:
            base += format_kv_pairs(extra)
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        return base


class Logger:
    """Structured logger that appends keyword arguments as fields.

    All public methods mirror the standard logging API with an added
    ``**kwargs`` parameter. Fields given to
    [bind()][bangerbot.core.logger.Logger.bind] are prepended to every
    record of the returned child logger.
    """

    _DEFAULT_MAX_VALUE_LENGTH: ClassVar[int] = 1000

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize a structured logger.

        Args:
            name: Logger name, typically the service or component name.
            json_output: If True, emit JSON objects instead of key=value pairs.
            max_value_length: Maximum character length for individual values
                before truncation. Defaults to 1000.
            context: Fields attached to every record.
        """
        if max_value_length is None:
            max_value_length = self._DEFAULT_MAX_VALUE_LENGTH
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = max_value_length
        self._context: dict[str, Any] = dict(context or {})

    @property
    def name(self) -> str:
        return self._logger.name

    def bind(self, **context: Any) -> Logger:
        """Return a child logger with *context* merged into every record."""
        return Logger(
            self._logger.name,
            json_output=self._json_output,
            max_value_length=self._max_value_length,
            context={**self._context, **context},
        )

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _fields(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        fields = {**self._context, **kwargs}
        return {
            key: _truncate(str(value), self._max_value_length)
            if isinstance(value, str) or not isinstance(value, int | float | bool)
            else value
            for key, value in fields.items()
        }

    def _format_json(self, msg: str, level: str, fields: dict[str, Any]) -> str:
        record = {
            "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
            "level": level,
            "service": self._logger.name,
            "message": msg,
            **fields,
        }
        return json.dumps(record, default=str)

    def _log(self, level: int, msg: str, kwargs: dict[str, Any], *, exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        fields = self._fields(kwargs)
        if self._json_output:
            text = self._format_json(msg, logging.getLevelName(level).lower(), fields)
            self._logger.log(level, text, exc_info=exc_info)
        else:
            extra = {"structured_kv": fields} if fields else {}
            self._logger.log(level, msg, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log at ERROR level with the active exception's traceback."""
        self._log(logging.ERROR, msg, kwargs, exc_info=True)
