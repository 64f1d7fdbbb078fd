"""
Foreground runner for watch-copy.

Sets up logging, starts the watcher and drives the copy loop on the main
thread until SIGINT/SIGTERM stops the watcher.
"""

import logging
import logging.handlers
import signal
import sys
import threading
from collections.abc import Callable, Mapping
from typing import Any

from watch_copy.config import (
    LOG_BACKUP_COUNT,
    LOG_FORMAT,
    MAX_LOG_SIZE_MB,
    WatchRequest,
    check_request,
    get_log_level,
    get_log_path,
)
from watch_copy.copier import CopyStats, Replicator
from watch_copy.observers import default_observer
from watch_copy.watcher import create_watcher

logger = logging.getLogger(__name__)

# Handlers added by setup_logging, replaced on every call.
_handlers: list[logging.Handler] = []


def setup_logging(environ: Mapping[str, str] | None = None) -> None:
    """Configure the stderr handler and, if requested, a rotating log file."""
    level = get_log_level(environ)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for old in _handlers:
        root_logger.removeHandler(old)
        old.close()
    _handlers.clear()

    fmt = logging.Formatter(LOG_FORMAT)

    log_path = get_log_path(environ)
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            str(log_path),
            maxBytes=MAX_LOG_SIZE_MB * 1024 * 1024,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        fh.setLevel(level)
        fh.setFormatter(fmt)
        _handlers.append(fh)

    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(level)
    sh.setFormatter(fmt)
    _handlers.append(sh)

    for handler in _handlers:
        root_logger.addHandler(handler)


def run(
    request: WatchRequest,
    observer_factory: Callable[[], Any] = default_observer,
) -> CopyStats:
    """Watch, filter and copy until the watcher is stopped.

    Raises WatchSetupError if the watch cannot be established.
    """
    for warning in check_request(request):
        logger.warning(warning)

    handle, receiver = create_watcher(
        request.source, recursive=True, observer_factory=observer_factory
    )

    def _handler(sig, frame):
        logger.info("Received signal %d, stopping.", sig)
        # The main thread may hold the channel lock; stop from elsewhere.
        threading.Thread(target=handle.stop, daemon=True, name="WatcherStop").start()

    previous = {
        sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        with handle:
            stats = Replicator(request).run(receiver)
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)

    logger.info(
        "Copied %d file(s) (%d bytes), %d failed, %d watch error(s).",
        stats.copied, stats.total_bytes, stats.failed, stats.watch_errors,
    )
    return stats
