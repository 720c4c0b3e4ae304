"""Logging setup: plain text or JSON lines на stdout."""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

# Атрибуты LogRecord, которые не переносятся в JSON payload как extra
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Минимальный JSON formatter для структурированных логов."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        # extra={...} из вызова логгера (observation, principal, ts и т.д.)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value

        return json.dumps(payload, separators=(",", ":"), default=str)


def configure_logging(fmt: str | None = None, level: int | str = logging.INFO) -> None:
    """
    Настройка root logger.

    Args:
        fmt: 'json' или 'text'. По умолчанию env LOG_FORMAT или 'text'
        level: уровень логирования
    """
    fmt = (fmt or os.getenv("LOG_FORMAT", "text")).lower()
    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s")
        )
    root.addHandler(handler)
