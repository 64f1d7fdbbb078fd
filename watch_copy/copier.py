"""
File copy loop for watch-copy.

Consumes change events from the watcher one at a time, keeps only file
content modifications whose path matches the request pattern, and copies
each match into the destination folder.  Sub-folders are flattened: only
the file name of the source is kept.  Existing destination files are
overwritten.

A failed copy is logged and counted but never stops the loop; the loop
ends only when the watcher signals end-of-stream.

Known limitations: only modify notifications are acted upon, so a file
that is created but never reported as modified is not copied.  On Linux
the watch ignores attribute-only changes (chmod, touch); other platforms
may report those as modifications too (see :mod:`watch_copy.observers`).
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from watch_copy.config import WatchRequest
from watch_copy.events import ChangeEvent, MalformedEventError, WatchError
from watch_copy.watcher import EventReceiver

logger = logging.getLogger(__name__)


@dataclass
class CopyRecord:
    """Record of a single file copy operation."""
    source: str
    destination: str
    size_bytes: int = 0
    success: bool = False
    error: str = ""


@dataclass
class CopyStats:
    """Aggregated counters for one run of the copy loop."""
    copied: int = 0
    failed: int = 0
    matched: int = 0
    ignored: int = 0
    malformed: int = 0
    watch_errors: int = 0
    total_bytes: int = 0
    last_copied_file: str = ""
    history: list[CopyRecord] = field(default_factory=list)

    def record(self, rec: CopyRecord) -> None:
        self.history.append(rec)
        if rec.success:
            self.copied += 1
            self.total_bytes += rec.size_bytes
            self.last_copied_file = rec.destination
        else:
            self.failed += 1
        # Keep last 1000 records
        if len(self.history) > 1000:
            self.history = self.history[-1000:]


class Replicator:
    """
    Applies a :class:`WatchRequest` to a stream of change events.

    Parameters
    ----------
    request : WatchRequest
        Source folder, compiled match pattern and destination folder.
    """

    def __init__(self, request: WatchRequest):
        self.request = request
        self.stats = CopyStats()

    def destination_for(self, source_path: Path) -> Path:
        """Flatten *source_path* into the destination folder."""
        return self.request.destination / source_path.name

    def matches(self, path: str) -> bool:
        """Return True if the pattern matches anywhere in *path*."""
        return self.request.pattern.search(path) is not None

    def handle(self, event: ChangeEvent) -> CopyRecord | None:
        """Process one event; return the copy record if a copy was attempted.

        Raises MalformedEventError for a modify event without paths.
        """
        if not event.is_modify:
            self.stats.ignored += 1
            return None
        logger.debug("Capture %s", event)
        path = event.primary_path
        if not self.matches(path):
            return None

        logger.info("Match %s", path)
        self.stats.matched += 1
        rec = self.copy(Path(path))
        self.stats.record(rec)
        return rec

    def copy(self, source_path: Path) -> CopyRecord:
        """Copy *source_path* into the destination, overwriting any existing file."""
        dest = self.destination_for(source_path)
        rec = CopyRecord(source=str(source_path), destination=str(dest))
        logger.info("Copy %s -> %s", source_path, dest)
        try:
            shutil.copy(source_path, dest)
            rec.size_bytes = dest.stat().st_size
            rec.success = True
        except OSError as exc:
            rec.error = str(exc)
            logger.error("Copy failed for %s: %s", source_path, exc)
        return rec

    def run(self, receiver: EventReceiver) -> CopyStats:
        """Drain *receiver* until the watcher shuts down."""
        while True:
            item = receiver.next()
            if item is None:
                break
            if isinstance(item, WatchError):
                self.stats.watch_errors += 1
                logger.error("watch error: %s", item)
                continue
            try:
                self.handle(item)
            except MalformedEventError as exc:
                self.stats.malformed += 1
                logger.warning("Skipping malformed event: %s", exc)
        logger.info("Event stream closed.")
        return self.stats
