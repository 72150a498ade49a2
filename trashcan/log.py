"""
Logging setup for trashcan.

Modules log through ``logging.getLogger(__name__)`` and attach context
with ``extra={...}``.  :func:`setup_logging` installs one root handler
that renders those records as JSON lines (or plain text), driven by
the ``logging`` section of the settings.
"""

import json
import logging
from typing import Any, Dict, Optional

from trashcan.config import LoggingSettings, get_settings
from trashcan.exceptions import ConfigurationError

# Attributes every LogRecord carries; anything else came from ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(_extra_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Plain text formatter that appends ``extra`` fields as ``key=value``."""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extra_fields(record)
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in sorted(extras.items()))
        return line


def setup_logging(settings: Optional[LoggingSettings] = None) -> None:
    """Install the trashcan handler on the root logger.

    Idempotent: a second call leaves the existing handler in place.

    Args:
        settings: Logging settings; defaults to ``get_settings().logging``.

    Raises:
        ConfigurationError: If the configured level is not a known level name.
    """
    cfg = settings or get_settings().logging
    level = logging.getLevelName(cfg.level.upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {cfg.level!r}")

    root = logging.getLogger()
    if any(getattr(h, "_trashcan", False) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonFormatter() if cfg.format.lower() == "json" else TextFormatter()
    )
    handler._trashcan = True  # type: ignore[attr-defined]
    root.setLevel(level)
    root.addHandler(handler)
