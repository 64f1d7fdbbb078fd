"""Observer selection for watch-copy.

watchdog reports inotify's attribute-change notification (IN_ATTRIB,
raised by chmod, chown or touch) as a ``FileModifiedEvent``, which is
indistinguishable from a content write once it reaches a handler.  On
Linux the watch is therefore registered without IN_ATTRIB, so only real
content modifications arrive as modify events.

Other platforms use watchdog's default observer.  Their native backends
(FSEvents, kqueue, ReadDirectoryChangesW) may still report metadata-only
changes as modifications; that is a platform limitation.
"""

from __future__ import annotations

import sys
from typing import Any

from watchdog.observers import Observer

IS_LINUX: bool = sys.platform.startswith("linux")

if IS_LINUX:
    from watchdog.observers.api import DEFAULT_OBSERVER_TIMEOUT, BaseObserver
    from watchdog.observers.inotify import InotifyEmitter
    from watchdog.observers.inotify_c import WATCHDOG_ALL_EVENTS, InotifyConstants

    # Kernel mask for the content-only watch.
    CONTENT_EVENT_MASK: int = WATCHDOG_ALL_EVENTS & ~InotifyConstants.IN_ATTRIB

    class ContentInotifyEmitter(InotifyEmitter):
        """Inotify emitter that never subscribes to attribute changes."""

        def get_event_mask_from_filter(self) -> int | None:
            mask = super().get_event_mask_from_filter()
            if mask is None:
                return CONTENT_EVENT_MASK
            return mask & ~InotifyConstants.IN_ATTRIB

    class ContentInotifyObserver(BaseObserver):
        """Inotify observer whose modify events mean content changes only."""

        def __init__(self, *, timeout: float = DEFAULT_OBSERVER_TIMEOUT) -> None:
            super().__init__(ContentInotifyEmitter, timeout=timeout)


def default_observer() -> Any:
    """Return a new observer for the current platform."""
    if IS_LINUX:
        return ContentInotifyObserver()
    return Observer()
