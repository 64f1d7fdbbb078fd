"""File system watcher for watch-copy.

Uses the watchdog library to monitor a source folder and turns its
callback-driven notifications into a pull-based stream.  The handler runs
on the observer's own thread and pushes every event into a bounded
channel; the consumer pulls them one at a time with
:meth:`EventReceiver.next`.

Caveat: watchdog buffers raw notifications in its own internal queue
before dispatching them, and skips consecutive identical events.  The
channel here neither drops nor duplicates anything, but it cannot recover
events the native layer never delivered.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

from watchdog.events import (
    DirDeletedEvent,
    DirMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)

from watch_copy.channel import BoundedChannel, ChannelClosed
from watch_copy.config import CHANNEL_CAPACITY
from watch_copy.events import ChangeEvent, WatchCopyError, WatchError
from watch_copy.observers import default_observer

logger = logging.getLogger(__name__)

WatchItem = ChangeEvent | WatchError


class WatchSetupError(WatchCopyError):
    """The watch could not be established."""


class _ChannelHandler(FileSystemEventHandler):
    """Watchdog handler that forwards every event into the channel."""

    def __init__(self, root: str, channel: BoundedChannel[WatchItem]):
        super().__init__()
        self._root = os.path.normpath(root)
        self._channel = channel

    def _is_root(self, path: Any) -> bool:
        return os.path.normpath(os.fsdecode(path)) == self._root

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Push *event* into the channel, blocking while it is full."""
        try:
            if isinstance(event, (DirDeletedEvent, DirMovedEvent)) and self._is_root(
                event.src_path
            ):
                logger.error("Watched folder removed: %s", self._root)
                self._channel.send(WatchError(f"watched path removed: {self._root}"))
                self._channel.close()
                return
            self._channel.send(ChangeEvent.from_watchdog(event))
        except ChannelClosed:
            logger.debug("Dropping %r, watcher is shutting down", event)


class EventReceiver:
    """Consumer end of the watcher: blocking, ordered, single use per item."""

    def __init__(self, channel: BoundedChannel[WatchItem]):
        self._channel = channel

    def next(self) -> WatchItem | None:
        """Block until the next event or watch error is available.

        Returns None once the watcher has shut down and every buffered
        item has been delivered.
        """
        return self._channel.receive()

    def __iter__(self) -> Iterator[WatchItem]:
        while True:
            item = self.next()
            if item is None:
                return
            yield item


class WatcherHandle:
    """Owns the running observer.  Call :meth:`stop` to end the stream.

    Usage:
        handle, receiver = create_watcher(source)
        with handle:
            for item in receiver:
                ...
    """

    def __init__(self, observer: Any, channel: BoundedChannel[WatchItem], path: str):
        self._observer: Any | None = observer
        self._channel = channel
        self.path = path

    def stop(self) -> None:
        """Stop watching and release resources.  Safe to call repeatedly."""
        # Close first so a dispatch thread blocked in send() can exit.
        self._channel.close()
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=5)
        logger.info("Watcher stopped.")

    @property
    def is_running(self) -> bool:
        """Return whether the watcher is currently active."""
        return self._observer is not None and self._observer.is_alive()

    def __enter__(self) -> WatcherHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def create_watcher(
    path: str | os.PathLike[str],
    recursive: bool = True,
    capacity: int = CHANNEL_CAPACITY,
    observer_factory: Callable[[], Any] = default_observer,
) -> tuple[WatcherHandle, EventReceiver]:
    """Start watching *path* and return the stop handle and event receiver.

    Raises WatchSetupError if the folder is missing or the OS refuses to
    set up the watch (e.g. the inotify instance limit has been reached).
    """
    source = os.path.abspath(os.fspath(path))
    if not os.path.isdir(source):
        logger.error("Source folder does not exist: %s", source)
        raise WatchSetupError(f"Source folder does not exist: {source}")

    channel: BoundedChannel[WatchItem] = BoundedChannel(capacity)
    handler = _ChannelHandler(source, channel)
    observer = observer_factory()
    try:
        observer.schedule(handler, source, recursive=recursive)
        observer.start()
    except OSError as exc:
        channel.close()
        logger.error("Could not watch %s: %s", source, exc)
        raise WatchSetupError(f"Could not watch {source}: {exc}") from exc

    logger.info("Watching '%s' (recursive=%s)", Path(source), recursive)
    return WatcherHandle(observer, channel, source), EventReceiver(channel)
