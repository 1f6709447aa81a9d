"""
repodb — structured logging.

File: src/repodb/observability/logging.py

Purpose
- Emit one JSON object per log line for the ``repodb`` logger hierarchy.

Functional requirements
- Records are handed to a queue and written by a listener thread, so git and
  document operations never block on a slow sink.
- Credentials (auth headers, ``token=``/``password=`` assignments, URL
  user-info, sensitive keys in ``extra=``) are redacted before writing.
- ``correlation_scope`` binds ``store``/``document``/``operation`` fields to
  every record logged inside it, across the queue hand-off.

Non-functional requirements
- A full queue drops records and counts them; it never raises.
"""

from __future__ import annotations

import atexit
import contextvars
import json
import logging
import logging.handlers
import math
import queue
import re
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Final

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
LogRedactor = Callable[[JSONValue], JSONValue]

_REDACTED: Final[str] = "***REDACTED***"
_CORRELATION_KEYS: Final[tuple[str, ...]] = ("store", "document", "operation", "run_id")
_SENSITIVE_KEY_TERMS: Final[tuple[str, ...]] = (
    "secret",
    "token",
    "password",
    "passphrase",
    "authorization",
    "credential",
    "extraheader",
)
_ASSIGNMENT_RE: Final = re.compile(
    r"(?i)\b(token|password|secret|authorization)\b\s*([:=])\s*([^\s,;]+)"
)
_AUTH_HEADER_RE: Final = re.compile(r"(?i)\b(bearer|basic)\s+[A-Za-z0-9._~+/-]+=*")
_URL_CREDENTIALS_RE: Final = re.compile(r"(://)[^/@\s:]+:[^/@\s]+@")

# Attributes every LogRecord carries; anything else came from ``extra=``.
_RECORD_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "correlation"}

_CORRELATION: contextvars.ContextVar[tuple[tuple[str, str], ...]] = contextvars.ContextVar(
    "repodb_log_correlation", default=()
)

_ACTIVE_LOCK = threading.Lock()
_ACTIVE: StructuredLoggingHandle | None = None
_ATEXIT_REGISTERED = False


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Sinks and policy for :func:`setup_structured_logging`."""

    log_dir: Path | str | None = None
    logger_name: str = "repodb"
    level: int | str = "INFO"
    log_filename: str = "repodb.jsonl"
    log_to_stderr: bool = True
    redact_secrets: bool = True
    queue_size: int = 4096


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    logger_name: str = "repodb",
) -> logging.Logger:
    """Configure logging from an ``[observability]`` config section; empty ``log_dir`` means no file."""

    section = dict(observability_config or {})
    level = section.get("log_level", "INFO")
    log_dir = section.get("log_dir") or None
    handle = setup_structured_logging(
        LoggingConfig(
            log_dir=log_dir if isinstance(log_dir, (str, Path)) else None,
            logger_name=logger_name,
            level=level if isinstance(level, (int, str)) else "INFO",
            log_to_stderr=bool(section.get("log_to_stderr", True)),
            redact_secrets=bool(section.get("redact_secrets", True)),
        )
    )
    return handle.logger


class _DroppingQueueHandler(logging.handlers.QueueHandler):
    def __init__(self, log_queue: queue.Queue[logging.LogRecord]) -> None:
        super().__init__(log_queue)
        self._dropped = 0
        self._dropped_lock = threading.Lock()

    @property
    def dropped(self) -> int:
        with self._dropped_lock:
            return self._dropped

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # The listener thread cannot see this thread's contextvars.
        context = get_correlation_context()
        if context:
            record.correlation = context
        return super().prepare(record)  # type: ignore[return-value]

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            with self._dropped_lock:
                self._dropped += 1


class JsonLineFormatter(logging.Formatter):
    """Render a record as a single sorted-key JSON object."""

    def __init__(self, *, redactor: LogRedactor) -> None:
        super().__init__()
        self._redact = redactor

    def format(self, record: logging.LogRecord) -> str:
        message = self._redact(record.getMessage())
        event: dict[str, JSONValue] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": message if isinstance(message, str) else json.dumps(message),
        }
        event.update(_correlation_fields(record))

        extras = {
            key: _to_json(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES
            and key not in _CORRELATION_KEYS
            and not key.startswith("_")
        }
        if extras:
            event["fields"] = self._redact(extras)
        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class StructuredLoggingHandle:
    """An active logging setup; :meth:`shutdown` drains the queue and closes sinks."""

    def __init__(
        self,
        logger: logging.Logger,
        log_path: Path | None,
        queue_handler: _DroppingQueueHandler,
        listener: logging.handlers.QueueListener,
        sinks: tuple[logging.Handler, ...],
    ) -> None:
        self.logger = logger
        self.log_path = log_path
        self._queue_handler = queue_handler
        self._listener = listener
        self._sinks = sinks
        self._lock = threading.Lock()
        self._is_shutdown = False

    @property
    def dropped_records(self) -> int:
        return self._queue_handler.dropped

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    def shutdown(self) -> None:
        with self._lock:
            if self._is_shutdown:
                return
            self.logger.removeHandler(self._queue_handler)
            # stop() processes everything already queued before returning.
            self._listener.stop()
            self._queue_handler.close()
            for sink in self._sinks:
                sink.close()
            self._is_shutdown = True


def setup_structured_logging(config: LoggingConfig) -> StructuredLoggingHandle:
    """Install queue-backed JSON logging on ``config.logger_name``, replacing any active setup."""

    if isinstance(config.queue_size, bool) or not isinstance(config.queue_size, int):
        raise ValueError("queue_size must be an integer")
    if config.queue_size <= 0:
        raise ValueError("queue_size must be > 0")
    if not config.logger_name.strip():
        raise ValueError("logger_name must not be empty")
    if not config.log_filename.strip() or Path(config.log_filename).name != config.log_filename:
        raise ValueError("log_filename must be a bare file name")
    level = _parse_level(config.level)

    shutdown_logging()

    formatter = JsonLineFormatter(
        redactor=default_log_redactor if config.redact_secrets else _keep
    )
    sinks: list[logging.Handler] = []
    log_path: Path | None = None
    if config.log_dir is not None:
        log_path = Path(config.log_dir) / config.log_filename
        log_path.parent.mkdir(parents=True, exist_ok=True)
        sinks.append(logging.FileHandler(log_path, encoding="utf-8"))
    if config.log_to_stderr:
        sinks.append(logging.StreamHandler())
    for sink in sinks:
        sink.setFormatter(formatter)

    logger = logging.getLogger(config.logger_name.strip())
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.setLevel(level)
    logger.propagate = False

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=config.queue_size)
    queue_handler = _DroppingQueueHandler(log_queue)
    listener = logging.handlers.QueueListener(log_queue, *sinks)
    listener.start()
    logger.addHandler(queue_handler)

    handle = StructuredLoggingHandle(logger, log_path, queue_handler, listener, tuple(sinks))
    global _ACTIVE, _ATEXIT_REGISTERED
    with _ACTIVE_LOCK:
        _ACTIVE = handle
        if not _ATEXIT_REGISTERED:
            atexit.register(shutdown_logging)
            _ATEXIT_REGISTERED = True
    return handle


def shutdown_logging(handle: StructuredLoggingHandle | None = None) -> None:
    """Shut down ``handle`` (default: the active setup)."""

    global _ACTIVE
    with _ACTIVE_LOCK:
        target = handle if handle is not None else _ACTIVE
        if target is _ACTIVE:
            _ACTIVE = None
    if target is not None:
        target.shutdown()


def get_active_logging_handle() -> StructuredLoggingHandle | None:
    with _ACTIVE_LOCK:
        return _ACTIVE


def get_correlation_context() -> dict[str, str]:
    return dict(_CORRELATION.get())


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    """Bind correlation fields for records logged in scope; ``None`` unbinds a field."""

    state = get_correlation_context()
    for key, value in fields.items():
        if value is None:
            state.pop(key, None)
        elif isinstance(value, str) and value.strip():
            state[key] = value.strip()
        else:
            raise ValueError(f"correlation value for {key!r} must be a non-empty string")
    token = _CORRELATION.set(tuple(state.items()))
    try:
        yield
    finally:
        _CORRELATION.reset(token)


def default_log_redactor(value: JSONValue) -> JSONValue:
    """Recursively mask sensitive keys, auth headers, assignments, and URL credentials."""

    if isinstance(value, str):
        text = _AUTH_HEADER_RE.sub(lambda m: f"{m.group(1)} {_REDACTED}", value)
        text = _ASSIGNMENT_RE.sub(lambda m: f"{m.group(1)}{m.group(2)}{_REDACTED}", text)
        return _URL_CREDENTIALS_RE.sub(lambda m: f"{m.group(1)}{_REDACTED}@", text)
    if isinstance(value, list):
        return [default_log_redactor(item) for item in value]
    if isinstance(value, dict):
        return {
            key: _REDACTED
            if any(term in key.lower() for term in _SENSITIVE_KEY_TERMS)
            else default_log_redactor(item)
            for key, item in value.items()
        }
    return value


def _keep(value: JSONValue) -> JSONValue:
    return value


def _parse_level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelNamesMapping().get(str(value).strip().upper())
    if level is None:
        raise ValueError(f"unsupported logging level {value!r}")
    return level


def _correlation_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    fields: dict[str, JSONValue] = {}
    bound = getattr(record, "correlation", None)
    if isinstance(bound, Mapping):
        fields.update({k: v for k, v in bound.items() if isinstance(v, str)})
    for key in _CORRELATION_KEYS:
        value = getattr(record, key, None)
        if isinstance(value, str) and value.strip():
            fields[key] = value.strip()
    return fields


def _to_json(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else repr(value)
    if isinstance(value, Mapping):
        return {str(key): _to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_json(item) for item in value]
    return str(value)


__all__ = [
    "JSONScalar",
    "JSONValue",
    "JsonLineFormatter",
    "LogRedactor",
    "LoggingConfig",
    "StructuredLoggingHandle",
    "correlation_scope",
    "default_log_redactor",
    "get_active_logging_handle",
    "get_correlation_context",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
