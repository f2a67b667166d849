"""Root logging setup for the launcher and the worker process.

Stdlib logging only. Job context travels in ``extra`` (``job_id``, ``backend``,
``status``) and is surfaced by the JSON formatter.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

from sage_launcher.core.paths import get_app_state_dir

_PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_CONTEXT_KEYS = ("event", "job_id", "backend", "status")
LOG_FILE_NAME = "launcher.log"


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update({k: getattr(record, k) for k in _CONTEXT_KEYS if hasattr(record, k)})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


def _file_handler(state_dir: Path) -> logging.Handler | None:
    logs_dir = state_dir / "logs"
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            logs_dir / LOG_FILE_NAME, maxBytes=2 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
    except OSError:
        return None
    handler.setFormatter(logging.Formatter(fmt=_PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    *,
    level: str | int | None = None,
    json_logs: bool | None = None,
    log_to_file: bool | None = None,
    state_dir: Path | None = None,
) -> None:
    """Configure root logging; unset arguments fall back to ``LOG_LEVEL``,
    ``LOG_JSON`` and ``LOG_FILE``.

    The console goes to stderr so stdout stays free for job output. File logs
    are plain text under ``<state_dir>/logs``.
    """
    lvl = level if level is not None else os.getenv("LOG_LEVEL", "INFO")
    if isinstance(lvl, str):
        lvl = logging.getLevelName(lvl.upper())
        if not isinstance(lvl, int):
            lvl = logging.INFO
    if json_logs is None:
        json_logs = _env_flag("LOG_JSON", "0")
    if log_to_file is None:
        log_to_file = _env_flag("LOG_FILE", "1")

    console = logging.StreamHandler(stream=sys.stderr)
    console.setFormatter(
        _JsonFormatter() if json_logs else logging.Formatter(_PLAIN_FORMAT, datefmt="%H:%M:%S")
    )
    handlers: list[logging.Handler] = [console]
    if log_to_file:
        fh = _file_handler(state_dir or get_app_state_dir())
        if fh is not None:
            handlers.append(fh)

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(lvl)
