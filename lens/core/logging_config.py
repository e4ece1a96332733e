"""
Logging setup for notebook-lens.

Library modules never configure logging; they only do

    logger = logging.getLogger(__name__)

and prefix messages with their component, e.g. "[JobPoller] ...".
The host application (or lens.cli) calls setup_logging() once, which
routes every record to a rotating file under logs/lens/ and to stderr.

    tail -f logs/lens/system.log
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_DIR = Path("logs/lens")
SYSTEM_LOG_FILE = LOG_DIR / "system.log"
MAX_LOG_SIZE = 10 * 1024 * 1024
BACKUP_COUNT = 5

FILE_FORMAT = logging.Formatter(
    "%(asctime)s | %(levelname)-5s | %(name)-30s | %(message)s", "%Y-%m-%d %H:%M:%S"
)
CONSOLE_FORMAT = logging.Formatter(
    "%(asctime)s | %(levelname)-5s | %(name)-20s | %(message)s", "%H:%M:%S"
)

# Third-party loggers that log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")

_installed: list[logging.Handler] = []


def _resolve_level(level: Optional[str]) -> int:
    if level is None:
        from lens.core.config import get_settings

        level = get_settings().log_level
    return getattr(logging, str(level).upper(), logging.INFO)


def _build_file_handler(level: int) -> logging.Handler:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        SYSTEM_LOG_FILE, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(FILE_FORMAT)
    return handler


def _build_console_handler(level: int) -> logging.Handler:
    # stderr keeps CLI output on stdout machine-readable
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(CONSOLE_FORMAT)
    return handler


def setup_logging(
    level: Optional[str] = None,
    log_to_console: bool = True,
    log_to_file: bool = True,
    service_name: str = "lens",
) -> None:
    """
    Install the root handlers. Later calls are no-ops until reset_logging().

    Args:
        level: DEBUG, INFO, WARNING or ERROR (default: Settings.log_level)
        log_to_console: Also log to stderr
        log_to_file: Log to logs/lens/system.log
        service_name: Logger used for the startup marker
    """
    if _installed:
        return

    log_level = _resolve_level(level)
    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    if log_to_file:
        _installed.append(_build_file_handler(log_level))
    if log_to_console:
        _installed.append(_build_console_handler(log_level))
    if not _installed:
        _installed.append(logging.NullHandler())
    for handler in _installed:
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(service_name).debug(
        f"Logging ready | level={logging.getLevelName(log_level)} | "
        f"file={get_system_log_path() if log_to_file else None}"
    )


def reset_logging() -> None:
    """Remove and close the handlers installed by setup_logging()."""
    root = logging.getLogger()
    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_system_log_path() -> Path:
    """Path of the rotating system log."""
    return SYSTEM_LOG_FILE
