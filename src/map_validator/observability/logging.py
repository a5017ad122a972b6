"""
map-validator — structured logging for one CLI run.

File: src/map_validator/observability/logging.py

Purpose
- Route ``structlog`` decision events into stdlib ``logging`` and out through a
  background queue listener to stderr and, optionally, a per-run JSON-lines file.

Record shape
- JSON: ``timestamp`` (UTC, millisecond ``Z``), ``level``, ``logger``, ``message``,
  ``run_id``, and the event keyword arguments under ``fields``.
- Text: ``<timestamp> <LEVEL> <logger> <message> key=<json> ...`` on one line.
- stdout is never written; it carries the report.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import math
import queue
import sys
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Final, Literal

import structlog

from map_validator.constants import DEFAULT_LOG_FILENAME
from map_validator.domain.models import JSONValue

_ROOT_LOGGER: Final[str] = "map_validator"
_NON_FINITE: Final[str] = "<non-finite>"

# Attributes every LogRecord carries; anything else on a record is an event field.
_RECORD_ATTRIBUTES: Final[frozenset[str]] = frozenset(vars(logging.makeLogRecord({}))) | {
    "asctime",
    "message",
    "run_id",
    "taskName",
}

LogFormat = Literal["json", "text"]


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    run_id: str
    level: int | str = "WARNING"
    log_format: LogFormat = "json"
    base_log_dir: Path | str = Path("logs")
    log_to_file: bool = False
    logger_name: str = _ROOT_LOGGER
    log_filename: str = DEFAULT_LOG_FILENAME
    queue_size: int = 4096


class _RunFormatter(logging.Formatter):
    """Formats one record as a JSON object or a single human readable line."""

    def __init__(self, *, run_id: str, log_format: LogFormat) -> None:
        super().__init__()
        self._run_id = run_id
        self._log_format = log_format

    def format(self, record: logging.LogRecord) -> str:
        stamp = _utc_timestamp(record.created)
        fields = _event_fields(record)
        trace = self.formatException(record.exc_info) if record.exc_info else None

        if self._log_format == "text":
            pairs = (f"{key}={_compact_json(fields[key])}" for key in sorted(fields))
            line = " ".join((stamp, record.levelname, record.name, record.getMessage(), *pairs))
            return line if trace is None else f"{line}\n{trace}"

        payload: dict[str, JSONValue] = {
            "timestamp": stamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": self._run_id,
        }
        if fields:
            payload["fields"] = fields
        if trace is not None:
            payload["exception"] = trace
        return _compact_json(payload)


@dataclass(slots=True)
class StructuredLoggingHandle:
    """Owns the queue listener and sinks installed for one run."""

    logger: logging.Logger
    run_id: str
    log_path: Path | None
    _queue_handler: logging.handlers.QueueHandler
    _listener: logging.handlers.QueueListener
    _sinks: tuple[logging.Handler, ...]
    _closed: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock)

    @property
    def is_shutdown(self) -> bool:
        return self._closed

    def shutdown(self) -> None:
        """Drain queued records, then detach and close every sink. Idempotent."""

        with self._lock:
            if self._closed:
                return
            self._listener.stop()
            self.logger.removeHandler(self._queue_handler)
            self._queue_handler.close()
            for sink in self._sinks:
                sink.flush()
                sink.close()
            self._closed = True


_active_lock = threading.Lock()
_active: StructuredLoggingHandle | None = None


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    run_id: str,
    level_override: str | None = None,
) -> StructuredLoggingHandle:
    """Configure logging from the ``[observability]`` config section."""

    section = observability_config or {}
    level = level_override or section.get("log_level") or "WARNING"
    log_dir = section.get("log_dir")
    return setup_structured_logging(
        LoggingConfig(
            run_id=run_id,
            level=level if isinstance(level, (int, str)) else "WARNING",
            log_format="text" if section.get("log_format") == "text" else "json",
            base_log_dir=log_dir if isinstance(log_dir, (str, Path)) else "logs",
            log_to_file=section.get("log_to_file") is True,
        )
    )


def setup_structured_logging(config: LoggingConfig) -> StructuredLoggingHandle:
    """Replace any active setup with a fresh queue-backed one for ``config.run_id``."""

    global _active
    shutdown_logging()

    run_id = _checked_run_id(config.run_id)
    level = _level_number(config.level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_RunFormatter(run_id=run_id, log_format=config.log_format))
    sinks: list[logging.Handler] = [console]
    log_path: Path | None = None
    if config.log_to_file:
        log_path = Path(config.base_log_dir) / run_id / config.log_filename
        log_path.parent.mkdir(parents=True, exist_ok=True)
        run_file = logging.FileHandler(log_path, encoding="utf-8")
        # The run file is always JSON, whatever the console format.
        run_file.setFormatter(_RunFormatter(run_id=run_id, log_format="json"))
        sinks.append(run_file)
    for sink in sinks:
        sink.setLevel(level)

    logger = logging.getLogger(config.logger_name)
    for stale in logger.handlers[:]:
        logger.removeHandler(stale)
        stale.close()
    logger.setLevel(level)
    logger.propagate = False

    records: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=max(1, config.queue_size))
    queue_handler = logging.handlers.QueueHandler(records)
    queue_handler.setLevel(level)
    listener = logging.handlers.QueueListener(records, *sinks, respect_handler_level=True)
    listener.start()
    logger.addHandler(queue_handler)
    configure_structlog()

    handle = StructuredLoggingHandle(
        logger=logger,
        run_id=run_id,
        log_path=log_path,
        _queue_handler=queue_handler,
        _listener=listener,
        _sinks=tuple(sinks),
    )
    with _active_lock:
        _active = handle
    return handle


def configure_structlog() -> None:
    """Send ``structlog`` events through stdlib loggers.

    Event keyword arguments become ``LogRecord`` extras, which the formatter emits
    under ``fields``.
    """

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.format_exc_info,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def shutdown_logging() -> None:
    global _active
    with _active_lock:
        handle, _active = _active, None
    if handle is not None:
        handle.shutdown()


def get_active_logging_handle() -> StructuredLoggingHandle | None:
    with _active_lock:
        return _active


def _checked_run_id(run_id: str) -> str:
    cleaned = run_id.strip()
    if not cleaned:
        raise ValueError("run_id must not be empty")
    if cleaned in {".", ".."} or "/" in cleaned or "\\" in cleaned:
        raise ValueError(f"run_id must be a single path component, got {cleaned!r}")
    return cleaned


def _level_number(level: int | str) -> int:
    if isinstance(level, int):
        return level
    number = logging.getLevelNamesMapping().get(level.strip().upper())
    if number is None:
        raise ValueError(f"unknown log level {level!r}")
    return number


def _utc_timestamp(created: float) -> str:
    moment = datetime.fromtimestamp(created, tz=UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _compact_json(value: JSONValue) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _event_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    return {
        key: _jsonable(value)
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
    }


def _jsonable(value: object) -> JSONValue:
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else _NON_FINITE
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((_jsonable(item) for item in value), key=repr)
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, Path):
        return value.as_posix()
    return str(value)


__all__ = [
    "LoggingConfig",
    "StructuredLoggingHandle",
    "configure_structlog",
    "get_active_logging_handle",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
