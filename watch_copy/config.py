"""Configuration for watch-copy.

There is no configuration file: the watch request comes entirely from
the command line, and logging is tuned through environment variables.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from watch_copy.events import WatchCopyError

logger = logging.getLogger(__name__)

# ---- defaults ----

DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVEL_ENV = "WATCH_COPY_LOG"
LOG_FILE_ENV = "WATCH_COPY_LOG_FILE"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
MAX_LOG_SIZE_MB = 10
LOG_BACKUP_COUNT = 3

# At most one event is buffered ahead of the copy loop.
CHANNEL_CAPACITY = 1


class ConfigError(WatchCopyError, ValueError):
    """A command-line argument could not be turned into a watch request."""


@dataclass(frozen=True)
class WatchRequest:
    """What to watch, what to match and where to copy it."""

    source: Path
    pattern: re.Pattern[str]
    destination: Path


def _resolve(value: str, what: str) -> Path:
    if not value or not value.strip():
        raise ConfigError(f"{what} path must not be empty")
    return Path(value).expanduser().resolve()


def compile_pattern(text: str) -> re.Pattern[str]:
    """Compile *text* as a regular expression, reporting errors as ConfigError."""
    try:
        return re.compile(text)
    except re.error as exc:
        raise ConfigError(f"invalid regular expression {text!r}: {exc}") from exc


def build_request(source: str, pattern: str, destination: str) -> WatchRequest:
    """Build the immutable :class:`WatchRequest` from raw arguments."""
    return WatchRequest(
        source=_resolve(source, "source"),
        pattern=compile_pattern(pattern),
        destination=_resolve(destination, "destination"),
    )


def check_request(request: WatchRequest) -> list[str]:
    """Return human-readable warnings about a request that will misbehave."""
    warnings = []
    if not request.destination.is_dir():
        warnings.append(
            f"Destination folder does not exist: {request.destination} "
            "(copies will fail until it is created)"
        )
    if request.destination == request.source or request.source in request.destination.parents:
        warnings.append(
            f"Destination {request.destination} is inside the watched folder; "
            "copied files may trigger further events"
        )
    return warnings


def get_log_level(environ: Mapping[str, str] | None = None) -> int:
    """Return the logging level named by the environment, defaulting to INFO."""
    env = os.environ if environ is None else environ
    name = env.get(LOG_LEVEL_ENV, "").strip() or DEFAULT_LOG_LEVEL
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        logger.warning("Unknown log level %r in %s; using %s", name, LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)
        return logging.INFO
    return level


def get_log_path(environ: Mapping[str, str] | None = None) -> Path | None:
    """Return the optional log file path from the environment."""
    env = os.environ if environ is None else environ
    value = env.get(LOG_FILE_ENV, "").strip()
    return Path(value).expanduser() if value else None
