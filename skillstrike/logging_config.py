"""Logging configuration shared by the API process and uvicorn.

build_log_config() returns a dictConfig mapping. setup_logging() applies it
in-process; `skillstrike serve` hands the same mapping to uvicorn so the
server's own records and the engine's come out in one format. Console lines
use uvicorn's formatter ("INFO:     skillstrike.session.manager: ...").

Environment overrides:
    SKILLSTRIKE_LOG_LEVEL=DEBUG|INFO|WARNING|ERROR
    SKILLSTRIKE_LOG_FILE=path/to/file.log
    SKILLSTRIKE_LOG_JSON=1
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

CONSOLE_FORMAT = "%(levelprefix)s %(name)s: %(message)s"
ACCESS_FORMAT = '%(levelprefix)s %(client_addr)s - "%(request_line)s" %(status_code)s'
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers held at WARNING whatever the app level is
QUIET_LOGGERS = ("asyncio", "websockets", "httpx")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def _level_name(level: str | int | None) -> str:
    if isinstance(level, int):
        return logging.getLevelName(level)
    name = (level or "").strip().upper()
    if isinstance(logging.getLevelName(name), int):
        return name
    return "INFO"


def build_log_config(
    level: str | int | None = None,
    log_file: str | None = None,
    json_format: bool | None = None,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 5,
) -> dict[str, Any]:
    """
    Build the dictConfig mapping. Environment variables beat arguments.

    Existing loggers are left enabled, so module loggers created at import
    time keep working after the config is applied.
    """
    level = _level_name(os.environ.get("SKILLSTRIKE_LOG_LEVEL") or level)
    log_file = os.environ.get("SKILLSTRIKE_LOG_FILE") or log_file
    if os.environ.get("SKILLSTRIKE_LOG_JSON"):
        json_format = os.environ["SKILLSTRIKE_LOG_JSON"].lower() not in ("0", "false", "no")

    formatters: dict[str, Any] = {
        "console": {
            "()": "uvicorn.logging.DefaultFormatter",
            "fmt": CONSOLE_FORMAT,
            "use_colors": None,
        },
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": ACCESS_FORMAT,
            "use_colors": None,
        },
        "file": {"format": FILE_FORMAT, "datefmt": DATE_FORMAT},
        "json": {"()": f"{__name__}.JsonFormatter"},
    }
    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json" if json_format else "console",
            "stream": "ext://sys.stderr",
        },
        "access": {
            "class": "logging.StreamHandler",
            "formatter": "json" if json_format else "access",
            "stream": "ext://sys.stdout",
        },
    }
    root_handlers = ["console"]

    if log_file:
        log_path = Path(log_file)
        if not log_path.is_absolute():
            log_path = Path.cwd() / log_path
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json" if json_format else "file",
            "filename": str(log_path),
            "maxBytes": max_bytes,
            "backupCount": backup_count,
            "encoding": "utf-8",
        }
        root_handlers.append("file")

    loggers: dict[str, Any] = {
        "uvicorn": {"level": level, "handlers": [], "propagate": True},
        "uvicorn.error": {"level": level, "propagate": True},
        "uvicorn.access": {"level": level, "handlers": ["access"], "propagate": False},
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "loggers": loggers,
        "root": {"level": level, "handlers": root_handlers},
    }


def setup_logging(
    level: str | int | None = None,
    log_file: str | None = None,
    json_format: bool | None = None,
) -> logging.Logger:
    """
    Apply build_log_config() to this process and return the root logger.

    Safe to call repeatedly: each call replaces the handlers of the
    previous one rather than adding to them.
    """
    config = build_log_config(level=level, log_file=log_file, json_format=json_format)
    logging.config.dictConfig(config)

    root = logging.getLogger()
    logging.getLogger(__name__).debug(
        "logging configured level=%s handlers=%s",
        config["root"]["level"],
        ",".join(config["root"]["handlers"]),
    )
    return root
