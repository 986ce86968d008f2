"""
Logging configuration for student-dashboard.

One call to setup_logging() wires the root logger to four outputs:
    - Console: coloured level + message, printed through tqdm so an import
      progress bar stays intact
    - log_full_{timestamp}.log: every record, DEBUG and up
    - log_errors_{timestamp}.log: ERROR and CRITICAL only
    - offline_writes_{timestamp}.log: one entry per student that was kept
      locally because the server did not confirm the write

Modules never configure handlers themselves; they ask for a named logger
and let records propagate to the root.

Usage:
    from student_dashboard.core.logger import setup_logging, get_logger

    setup_logging(config.logging.directory, verbose=True)
    logger = get_logger(__name__)
    logger.info("Refreshing students")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
RUN_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

# Extra fields carried by offline-write records
OFFLINE_KEY_FIELD = "offline_record_key"
OFFLINE_NAME_FIELD = "offline_record_name"
OFFLINE_REASON_FIELD = "offline_reason"


class Colors:
    """ANSI escape sequences used on the console."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Console formatter: "LEVEL: message", with the level coloured.

    With show_names=True (verbose mode) the logger name is inserted after
    the level, which helps when following DEBUG output across modules.
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def __init__(self, show_names: bool = False) -> None:
        super().__init__()
        self.show_names = show_names

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        prefix = f"{color}{record.levelname}{Colors.RESET}"
        if self.show_names:
            prefix = f"{prefix} [{record.name}]"
        return f"{prefix}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """Console handler that prints above any active tqdm bar."""

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream or sys.stderr)
        except Exception:
            self.handleError(record)


class OfflineWriteHandler(logging.Handler):
    """
    Writes the offline-write report.

    Only records logged through log_offline_write() carry the extra fields
    this handler reads; everything else is ignored. Each entry is three
    lines and a blank separator:

        1718000000000-jane@example.com
        Jane Doe
        Reason: Could not reach server

    Attributes:
        report_path: Where the report is written.
        report_file: Open handle, set by open() and cleared by close().
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Create (or truncate) the report file."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if self.report_file is None or not hasattr(record, OFFLINE_KEY_FIELD):
            return

        try:
            entry = (
                f"{getattr(record, OFFLINE_KEY_FIELD)}\n"
                f"{getattr(record, OFFLINE_NAME_FIELD, 'Unknown')}\n"
                f"Reason: {getattr(record, OFFLINE_REASON_FIELD, '')}\n\n"
            )
            self.report_file.write(entry)
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file; calling it again is harmless."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """Let through ERROR and CRITICAL records only."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def _file_handler(path: Path, *filters: logging.Filter) -> logging.FileHandler:
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    for log_filter in filters:
        handler.addFilter(log_filter)
    return handler


def setup_logging(log_dir: Path, verbose: bool = False) -> None:
    """
    Attach the console, file and report handlers to the root logger.

    Any handlers already on the root logger are replaced, so calling this
    again (e.g. once per CLI invocation in tests) does not stack outputs.

    Args:
        log_dir: Directory for this run's log files; created if missing.
        verbose: Show DEBUG records and logger names on the console.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime(RUN_TIMESTAMP_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter(show_names=verbose))

    offline_handler = OfflineWriteHandler(log_dir / f"offline_writes_{timestamp}.log")
    offline_handler.open()

    for handler in (
        console_handler,
        _file_handler(log_dir / f"log_full_{timestamp}.log"),
        _file_handler(log_dir / f"log_errors_{timestamp}.log", ErrorOnlyFilter()),
        offline_handler,
    ):
        root_logger.addHandler(handler)

    # urllib3 logs every pooled connection at DEBUG
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Named logger for a module; pass __name__.

    Records propagate to the root logger, so nothing is printed until
    setup_logging() has run (tests rely on pytest's own capture instead).
    """
    return logging.getLogger(name)


def log_offline_write(
    logger: logging.Logger,
    record_key: str,
    display_name: str,
    reason: str
) -> None:
    """
    Log a student that was kept locally because the server did not confirm it.

    Emits a WARNING carrying the extra fields OfflineWriteHandler needs to
    add an entry to offline_writes_{timestamp}.log.

    Example:
        log_offline_write(
            logger,
            record_key="1718000000000-jane@example.com",
            display_name="Jane Doe",
            reason="Could not reach server"
        )
    """
    logger.warning(
        f"Saved locally only: {display_name} ({reason})",
        extra={
            OFFLINE_KEY_FIELD: record_key,
            OFFLINE_NAME_FIELD: display_name,
            OFFLINE_REASON_FIELD: reason,
        }
    )


def shutdown_logging() -> None:
    """Flush, close and detach every handler on the root logger."""
    root_logger = logging.getLogger()

    for handler in list(root_logger.handlers):
        try:
            handler.flush()
            handler.close()
        except (OSError, ValueError):
            pass
        root_logger.removeHandler(handler)
