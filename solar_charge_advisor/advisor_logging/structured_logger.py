"""Structured event logger for the Solar Charge Advisor.

This logger writes to:
1. The standard logging tree under "solar_charge_advisor" - ALWAYS
2. A rotating file log - when file logging is enabled
3. Daily structured JSON-lines logs (YEAR/MONTH/DAY/events.log) - when
   file logging is enabled

File logging is off by default. File I/O runs in a background thread so
planning calls never wait on the disk.
"""

from __future__ import annotations

import atexit
import json
import logging
import queue
import threading
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from ..const import LOG_BACKUP_COUNT, LOG_MAX_FILE_SIZE_MB, LOGGER_NAME

_LOGGER = logging.getLogger(__name__)


class AdvisorLogger:
    """Event logger on top of the standard logging module.

    Events are logged as "EVENT | key=value | ..." lines and, with file
    logging enabled, also appended to a daily JSON-lines file.
    """

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"

    def __init__(
        self,
        name: str = "events",
        log_dir: Path | None = None,
        file_logging_enabled: bool = False,
        max_file_size_mb: int = LOG_MAX_FILE_SIZE_MB,
        backup_count: int = LOG_BACKUP_COUNT,
    ) -> None:
        """Initialize the logger.

        Args:
            name: Child logger name under "solar_charge_advisor"
            log_dir: Base directory for log files (default: ./log)
            file_logging_enabled: Whether to write log files
            max_file_size_mb: Max size of the rotating log file
            backup_count: Number of rotated files to keep
        """
        self.name = name
        self.log_dir = log_dir if log_dir is not None else Path.cwd() / "log"
        self._file_logging_enabled = False
        self._max_file_size_mb = max_file_size_mb
        self._backup_count = backup_count

        self._logger = logging.getLogger(f"{LOGGER_NAME}.{name}")

        self._rotating_log_file = self.log_dir / "solar_charge_advisor.log"
        self._file_handler: RotatingFileHandler | None = None

        self._write_queue: queue.Queue = queue.Queue()
        self._shutdown_event = threading.Event()
        self._writer_thread: threading.Thread | None = None
        atexit.register(self.close)

        if file_logging_enabled:
            self.set_file_logging(True)

    def _start_writer_thread(self) -> None:
        """Start the background writer thread."""
        if self._writer_thread is not None and self._writer_thread.is_alive():
            return

        self._init_file_handler()
        self._shutdown_event.clear()
        self._writer_thread = threading.Thread(
            target=self._writer_loop,
            name="AdvisorLogWriter",
            daemon=True,
        )
        self._writer_thread.start()

    def _writer_loop(self) -> None:
        """Process queued daily log writes until shut down."""
        while not self._shutdown_event.is_set():
            try:
                item = self._write_queue.get(timeout=0.5)
            except queue.Empty:
                continue

            try:
                if item is None:
                    break
                self._write_daily_entry(*item)
            except OSError as ex:
                _LOGGER.error("Failed to write daily log entry: %s", ex)
            finally:
                self._write_queue.task_done()

    def _init_file_handler(self) -> None:
        """Attach a rotating file handler to the event logger."""
        if self._file_handler is not None:
            return

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                self._rotating_log_file,
                maxBytes=self._max_file_size_mb * 1024 * 1024,
                backupCount=self._backup_count,
                encoding="utf-8",
            )
        except OSError as ex:
            _LOGGER.error("Failed to set up file handler: %s", ex)
            return

        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        handler.setLevel(logging.DEBUG)
        self._logger.addHandler(handler)
        self._file_handler = handler

    def daily_log_file(self, dt: datetime | None = None) -> Path:
        """Get the path of the daily structured log for a date."""
        if dt is None:
            dt = datetime.now()
        return self.log_dir / str(dt.year) / f"{dt.month:02d}" / f"{dt.day:02d}" / "events.log"

    def _write_daily_entry(self, event: str, level: str, data: dict, timestamp: datetime) -> None:
        log_file = self.daily_log_file(timestamp)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        entry = {
            "timestamp": timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3],
            "level": level,
            "event": event,
            "data": data,
        }
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")

    def log(self, level: str, event: str, **data: Any) -> None:
        """Log an event at the given level.

        Args:
            level: One of critical, error, warning, info, debug
            event: Event name (e.g. "PLAN_CALCULATED")
            **data: Additional context
        """
        message = event
        if data:
            message = f"{event} | " + " | ".join(f"{k}={v}" for k, v in data.items())

        log_level = getattr(logging, level.upper(), logging.DEBUG)
        self._logger.log(log_level, message)

        if self._file_logging_enabled:
            self._write_queue.put_nowait((event, level, data, datetime.now()))

    def critical(self, event: str, **data: Any) -> None:
        """Log critical event."""
        self.log(self.CRITICAL, event, **data)

    def error(self, event: str, **data: Any) -> None:
        """Log error event."""
        self.log(self.ERROR, event, **data)

    def warning(self, event: str, **data: Any) -> None:
        """Log warning event."""
        self.log(self.WARNING, event, **data)

    def info(self, event: str, **data: Any) -> None:
        """Log info event."""
        self.log(self.INFO, event, **data)

    def debug(self, event: str, **data: Any) -> None:
        """Log debug event."""
        self.log(self.DEBUG, event, **data)

    def set_file_logging(self, enabled: bool) -> None:
        """Enable or disable file logging."""
        if enabled and not self._file_logging_enabled:
            self._start_writer_thread()
        self._file_logging_enabled = enabled
        self.info("FILE_LOGGING_CHANGED", enabled=enabled, log_dir=self.log_dir)

    @property
    def file_logging_enabled(self) -> bool:
        """Check if file logging is enabled."""
        return self._file_logging_enabled

    def flush(self) -> None:
        """Block until queued daily log writes are on disk."""
        if self._writer_thread is not None and self._writer_thread.is_alive():
            self._write_queue.join()
        if self._file_handler is not None:
            self._file_handler.flush()

    def close(self) -> None:
        """Stop the writer thread and release the file handler."""
        if self._writer_thread is not None and self._writer_thread.is_alive():
            self._write_queue.put(None)
            self._writer_thread.join(timeout=2.0)
        self._shutdown_event.set()
        self._writer_thread = None
        self._file_logging_enabled = False

        if self._file_handler is not None:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None


_logger_instance: AdvisorLogger | None = None


def get_logger() -> AdvisorLogger:
    """Get or create the shared logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = AdvisorLogger()
    return _logger_instance
