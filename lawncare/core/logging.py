"""One JSON object per log line.

Each line names the app, the request id and, once the gate has resolved one,
the signed-in admin. Fields passed as ``extra={"extra_data": {...}}`` are
merged at the top level but never replace the base keys.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from ..middlewares import principal_ctx_var, request_id_ctx_var

# ``request.completed`` replaces uvicorn's access log, and outbound provider
# calls are logged by the clients themselves.
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class JsonLogFormatter(logging.Formatter):
    def __init__(self, app_name: Optional[str] = None) -> None:
        super().__init__()
        self.app_name = app_name

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.app_name:
            payload["app"] = self.app_name
        for key, var in (("request_id", request_id_ctx_var), ("principal", principal_ctx_var)):
            value = var.get()
            if value:
                payload[key] = value
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, Mapping):
            for key, value in extra.items():
                payload.setdefault(key, value)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


def configure_logging(level: str = "INFO", app_name: Optional[str] = None) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter(app_name))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
