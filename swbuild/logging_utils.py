from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        data: dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)  # type: ignore[arg-type]
        # Attach build-scoped fields
        bid = get_build_id()
        if bid and not hasattr(record, "build_id"):
            data["build_id"] = bid
        for key in ("build_id", "phase", "path", "entries"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        return json.dumps(data, ensure_ascii=False)


def configure_json_logging(level: int = logging.INFO) -> None:
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    # Remove other handlers to avoid duplicate logs
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)


def maybe_enable_json_logging() -> bool:
    if (os.environ.get("SW_JSON_LOGS") or "").strip().lower() in {"1", "true", "yes", "on"}:
        configure_json_logging()
        return True
    return False


# Build-scoped context helpers
_BUILD_ID: ContextVar[Optional[str]] = ContextVar("build_id", default=None)


def get_build_id() -> Optional[str]:
    return _BUILD_ID.get()


@contextmanager
def build_context(build_id: Optional[str]) -> Iterator[None]:
    token = _BUILD_ID.set(build_id)
    try:
        yield
    finally:
        _BUILD_ID.reset(token)
