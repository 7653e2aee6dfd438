from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import datetime, timezone

REQUEST_LOG_FIELDS = (
    "request_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_ip",
)
BUNDLE_LOG_FIELDS = (
    "app_env",
    "mount_path",
    "route_module",
)
CONFIGURED_FLAG = "_bundle_logging_configured"


class AppEnvFilter(logging.Filter):
    """Stamp every record with the application mode unless the caller set one."""

    def __init__(self, app_env: str) -> None:
        super().__init__()
        self.app_env = app_env

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "app_env", None) is None:
            record.app_env = self.app_env
        return True


class JsonFormatter(logging.Formatter):
    def __init__(self, fields: Iterable[str] = REQUEST_LOG_FIELDS + BUNDLE_LOG_FIELDS) -> None:
        super().__init__()
        self.fields = tuple(fields)

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in self.fields:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _bundle_handler(root: logging.Logger) -> logging.Handler | None:
    for handler in root.handlers:
        if getattr(handler, CONFIGURED_FLAG, False):
            return handler
    return None


def configure_logging(*, level: str = "INFO", json_logs: bool = True, app_env: str | None = None) -> logging.Handler:
    """Install one stream handler on the root logger.

    Calling again only updates the level and the ``app_env`` stamp; the
    handler and its format stay as first configured.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    handler = _bundle_handler(root)
    if handler is None:
        root.handlers.clear()
        handler = logging.StreamHandler()
        if json_logs:
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(app_env)s] %(message)s"))
        setattr(handler, CONFIGURED_FLAG, True)
        root.addHandler(handler)

    for existing in [f for f in handler.filters if isinstance(f, AppEnvFilter)]:
        handler.removeFilter(existing)
    handler.addFilter(AppEnvFilter(app_env or "development"))
    return handler
