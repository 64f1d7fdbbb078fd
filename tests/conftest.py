"""Shared fixtures for watch-copy tests."""
from __future__ import annotations

import re
from pathlib import Path

import pytest

from watch_copy.config import WatchRequest


class FakeObserver:
    """Stands in for a watchdog Observer; tests drive its handler directly."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.handler = None
        self.path: str | None = None
        self.recursive: bool | None = None
        self.started = False
        self.stopped = False
        self.joined = False

    def schedule(self, handler, path, recursive=False):
        if self.fail_on == "schedule":
            raise OSError(28, "inotify watch limit reached")
        self.handler = handler
        self.path = path
        self.recursive = recursive

    def start(self) -> None:
        if self.fail_on == "start":
            raise OSError(24, "inotify instance limit reached")
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout: float | None = None) -> None:
        self.joined = True

    def is_alive(self) -> bool:
        return self.started and not self.stopped


@pytest.fixture()
def fake_observer() -> FakeObserver:
    return FakeObserver()


@pytest.fixture()
def dirs(tmp_path: Path) -> tuple[Path, Path]:
    source = tmp_path / "src"
    destination = tmp_path / "out"
    source.mkdir()
    destination.mkdir()
    return source, destination


@pytest.fixture()
def make_request(dirs):
    source, destination = dirs

    def factory(pattern: str = r".*", dest: Path | None = None) -> WatchRequest:
        return WatchRequest(
            source=source,
            pattern=re.compile(pattern),
            destination=dest if dest is not None else destination,
        )

    return factory
