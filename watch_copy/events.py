"""Change events delivered by the folder watcher.

A :class:`ChangeEvent` is the normalised form of a single watchdog
notification.  Only plain file content modifications are classified as
``MODIFIED``; everything else (creates, deletes, moves, directory
updates, open/close notifications) collapses to ``OTHER`` and is ignored
downstream.

watchdog itself cannot tell a metadata-only change from a content write:
both arrive as ``FileModifiedEvent``.  Attribute changes are filtered out
before they reach here by the Linux observer in :mod:`watch_copy.observers`;
on other platforms they may still be classified as ``MODIFIED``.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass

from watchdog.events import FileModifiedEvent, FileSystemEvent


class WatchCopyError(Exception):
    """Base class for all watch-copy errors."""


class WatchError(WatchCopyError):
    """An error reported by the native watcher after setup succeeded."""


class MalformedEventError(WatchCopyError):
    """A change event arrived without any affected path."""


class EventKind(enum.Enum):
    MODIFIED = "modified"
    OTHER = "other"


@dataclass(frozen=True)
class ChangeEvent:
    """A single filesystem change: its kind and the affected paths."""

    kind: EventKind
    paths: tuple[str, ...] = ()

    @classmethod
    def from_watchdog(cls, event: FileSystemEvent) -> ChangeEvent:
        """Classify a raw watchdog event."""
        if isinstance(event, FileModifiedEvent) and not event.is_directory:
            kind = EventKind.MODIFIED
        else:
            kind = EventKind.OTHER
        paths = [os.fsdecode(event.src_path)]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(os.fsdecode(dest))
        return cls(kind, tuple(p for p in paths if p))

    @property
    def is_modify(self) -> bool:
        return self.kind is EventKind.MODIFIED

    @property
    def primary_path(self) -> str:
        """Return the first affected path.

        Raises MalformedEventError if the event carries no paths.
        """
        if not self.paths:
            raise MalformedEventError(f"{self.kind.value} event has no affected paths")
        return self.paths[0]
