"""Structured logging for study-aid commands and the HTTP server.

Each entry point logs to ``<workspace>/logs/<name>.log`` as JSON lines, with
anything passed through ``extra=`` collected under an ``"extra"`` key. In
verbose mode the same records are mirrored to stderr through Rich.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping, Optional

from rich.console import Console
from rich.logging import RichHandler

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]


_FILE_MARKER = "_study_aid_file"
_CONSOLE_MARKER = "_study_aid_console"

# Attributes every LogRecord carries (``taskName`` included on 3.12+).
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {
    "message",
    "asctime",
}


class JsonLogFormatter(logging.Formatter):
    """Render a record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=True)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    filename: str | None = None,
) -> tuple[logging.Logger, Path]:
    """Return ``name``'s logger wired to a rotating JSON file.

    Safe to call repeatedly: the managed file and console handlers are
    reused, and the file handler follows ``log_dir`` when it changes.
    ``verbose`` lowers the file threshold to DEBUG and adds the console.
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    log_name = filename or f"{name.rsplit('.', 1)[-1]}.log"
    handler = _file_handler(
        logger,
        _writable_log_path(log_dir, log_name),
        max_bytes=max_bytes,
        backup_count=backup_count,
    )
    handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))
    _set_console(logger, enabled=verbose)
    return logger, Path(handler.baseFilename)


def _coerce_level(level: str) -> int:
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else logging.INFO


def _managed(logger: logging.Logger, marker: str) -> Optional[logging.Handler]:
    for handler in logger.handlers:
        if getattr(handler, marker, False):
            return handler
    return None


def _file_handler(
    logger: logging.Logger,
    path: Path,
    *,
    max_bytes: int,
    backup_count: int,
) -> RotatingFileHandler:
    existing = _managed(logger, _FILE_MARKER)
    if existing is not None:
        target = os.path.abspath(path)
        if existing.baseFilename != target:  # type: ignore[attr-defined]
            # Closed file handlers reopen lazily on the next emit.
            existing.close()
            existing.baseFilename = target  # type: ignore[attr-defined]
        return existing  # type: ignore[return-value]

    try:
        handler = RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    except PermissionError:
        path = _writable_log_path(_fallback_log_dir(), path.name)
        handler = RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    handler.setFormatter(JsonLogFormatter())
    setattr(handler, _FILE_MARKER, True)
    logger.addHandler(handler)
    return handler


def _set_console(logger: logging.Logger, *, enabled: bool) -> None:
    existing = _managed(logger, _CONSOLE_MARKER)
    if enabled and existing is None:
        console = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            markup=False,
        )
        console.setLevel(logging.DEBUG)
        setattr(console, _CONSOLE_MARKER, True)
        logger.addHandler(console)
    elif not enabled and existing is not None:
        logger.removeHandler(existing)
        existing.close()


def _writable_log_path(log_dir: Path, filename: str) -> Path:
    """Return a touchable log file, falling back to the temp directory."""

    for directory in (log_dir, _fallback_log_dir()):
        path = directory / filename
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path.touch(exist_ok=True)
        except PermissionError:
            continue
        _chmod(directory, 0o700)
        _chmod(path, 0o600)
        return path
    raise PermissionError(f"No writable directory for log file {filename}")


def _chmod(path: Path, mode: int) -> None:
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, os.PathLike):
        return os.fspath(value)
    if isinstance(value, Mapping):
        return {str(key): _jsonable(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return repr(value)


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "study-aid-logs"
