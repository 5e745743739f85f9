"""Logging setup with per-cycle and per-source context.

Every log line emitted during an ingestion cycle carries the cycle's
run ID, and lines emitted while one feed is being processed also carry
that feed's publisher name. Both are held in context variables, so
concurrent tasks never see each other's values.

Output:
    - Console (stderr): text or JSON, level from LOG_LEVEL (-v forces DEBUG)
    - File (LOG_DIR/newsfeed.log): same format, always DEBUG, rotated by
      size when LOG_MAX_BYTES > 0, otherwise daily

Usage:
    >>> setup_logging(config)
    >>> set_run_context("a1b2c3d4")
    >>> with source_context("The Hindu"):
    ...     logger.info("Source processed")
    12:00:01 [INFO] [a1b2c3d4|The Hindu] pipeline: Source processed
"""

import contextvars
import json
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Any, Iterator

LOG_FILE_NAME = "newsfeed.log"

run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="-")
source_var: contextvars.ContextVar[str] = contextvars.ContextVar("source", default="-")

# Attributes every LogRecord has; anything else came in through `extra=`
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "run_id", "source", "context", "taskName"}

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("aiohttp", "asyncio", "chardet", "charset_normalizer")


def set_run_context(run_id: str) -> None:
    """Tag subsequent log lines with an ingestion cycle ID."""
    run_id_var.set(run_id)


def clear_context() -> None:
    """Reset run and source context."""
    run_id_var.set("-")
    source_var.set("-")


@contextmanager
def source_context(name: str) -> Iterator[None]:
    """Tag log lines emitted inside the block with a feed publisher."""
    token = source_var.set(name)
    try:
        yield
    finally:
        source_var.reset(token)


class ContextFilter(logging.Filter):
    """Copy run ID and source from context variables onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_var.get()
        record.source = source_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Fields: timestamp, level, logger, message, run_id, plus source when
    set, location for warnings and above, exception text, and any
    `extra=` values (stringified when not JSON-serializable).
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": getattr(record, "run_id", "-"),
        }
        source = getattr(record, "source", "-")
        if source != "-":
            entry["source"] = source

        if record.levelno >= logging.WARNING:
            entry["location"] = f"{record.filename}:{record.lineno} in {record.funcName}"

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key in entry:
                continue
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = str(value)
            entry[key] = value

        return json.dumps(entry, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """TIMESTAMP [LEVEL] [run_id|source] logger: message

    The source part is omitted outside of per-feed processing.
    """

    def __init__(self, include_date: bool = False):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] [%(context)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S" if include_date else "%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        run_id = getattr(record, "run_id", "-")
        source = getattr(record, "source", "-")
        record.context = run_id if source == "-" else f"{run_id}|{source}"
        return super().format(record)


def _file_handler(config: Any) -> logging.Handler:
    """Rotating file handler under config.log_dir.

    Raises:
        OSError: If the directory cannot be created or written
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)
    log_file = config.log_dir / LOG_FILE_NAME
    if config.log_max_bytes > 0:
        return RotatingFileHandler(
            log_file,
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
            encoding="utf-8",
        )
    return TimedRotatingFileHandler(
        log_file,
        when="midnight",
        backupCount=config.log_backup_count,
        encoding="utf-8",
    )


def setup_logging(config: Any, verbose: bool = False) -> bool:
    """Install console and file handlers on the root logger.

    Replaces any handlers already installed. When the log directory is
    not writable, logs to the console only.

    Args:
        config: Configuration carrying log_level, log_format, log_dir,
            log_max_bytes and log_backup_count
        verbose: Force DEBUG on the console

    Returns:
        True if file logging is active
    """
    json_output = config.log_format == "json"
    context_filter = ContextFilter()

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    # stdout is reserved for command output
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO))
    console.setFormatter(JsonFormatter() if json_output else TextFormatter())
    console.addFilter(context_filter)
    root.addHandler(console)

    try:
        file_handler = _file_handler(config)
    except OSError as e:
        print(
            f"Warning: Cannot write to log directory '{config.log_dir}': {e}. "
            "Falling back to console-only logging.",
            file=sys.stderr,
        )
        file_handler = None

    if file_handler is not None:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JsonFormatter() if json_output else TextFormatter(include_date=True))
        file_handler.addFilter(context_filter)
        root.addHandler(file_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return file_handler is not None
