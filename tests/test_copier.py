"""Tests for the filter-and-copy loop."""
from __future__ import annotations

import logging
from pathlib import Path

from watch_copy.channel import BoundedChannel
from watch_copy.copier import Replicator
from watch_copy.events import ChangeEvent, EventKind, WatchError
from watch_copy.watcher import EventReceiver


def modified(path: Path | str) -> ChangeEvent:
    return ChangeEvent(EventKind.MODIFIED, (str(path),))


def receiver_for(*items) -> EventReceiver:
    channel = BoundedChannel(max(1, len(items)))
    for item in items:
        channel.send(item)
    channel.close()
    return EventReceiver(channel)


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_pattern_match_copies_file(dirs, make_request):
    source, destination = dirs
    notes = write(source / "a" / "notes.txt", "hello")
    replicator = Replicator(make_request(r"\.txt$"))

    rec = replicator.handle(modified(notes))

    assert rec is not None and rec.success
    assert (destination / "notes.txt").read_text(encoding="utf-8") == "hello"
    assert replicator.stats.copied == 1
    assert replicator.stats.last_copied_file == str(destination / "notes.txt")


def test_pattern_mismatch_copies_nothing(dirs, make_request):
    source, destination = dirs
    binary = write(source / "a" / "notes.bin", "data")
    replicator = Replicator(make_request(r"\.txt$"))

    assert replicator.handle(modified(binary)) is None
    assert list(destination.iterdir()) == []


def test_match_is_unanchored(make_request):
    replicator = Replicator(make_request(r"nested"))

    assert replicator.matches("/src/deep/nested/file.log")
    assert not replicator.matches("/src/deep/file.log")


def test_anchored_pattern_is_tested_against_full_path(make_request):
    replicator = Replicator(make_request(r"^config-"))

    assert not replicator.matches("/src/config-app.json")
    assert replicator.matches("config-app.json")


def test_non_modify_events_never_copy(dirs, make_request):
    source, destination = dirs
    notes = write(source / "notes.txt", "hello")
    replicator = Replicator(make_request(r".*"))

    for event in (
        ChangeEvent(EventKind.OTHER, (str(notes),)),
        ChangeEvent(EventKind.OTHER, ()),
    ):
        assert replicator.handle(event) is None

    assert list(destination.iterdir()) == []
    assert replicator.stats.ignored == 2


def test_nested_source_is_flattened(dirs, make_request):
    source, destination = dirs
    log = write(source / "deep" / "nested" / "file.log", "entry")
    replicator = Replicator(make_request(r".*"))

    rec = replicator.handle(modified(log))

    assert rec.destination == str(destination / "file.log")
    assert (destination / "file.log").read_text(encoding="utf-8") == "entry"
    assert not (destination / "deep").exists()


def test_repeated_copy_overwrites(dirs, make_request):
    source, destination = dirs
    data = write(source / "data.csv", "a,b\n1,2\n")
    replicator = Replicator(make_request(r"\.csv$"))

    first = replicator.handle(modified(data))
    second = replicator.handle(modified(data))

    assert first.success and second.success
    assert (destination / "data.csv").read_bytes() == data.read_bytes()

    data.write_text("a,b\n3,4\n", encoding="utf-8")
    replicator.handle(modified(data))
    assert (destination / "data.csv").read_bytes() == data.read_bytes()
    assert replicator.stats.copied == 3


def test_missing_destination_is_logged_not_raised(dirs, make_request, caplog):
    source, destination = dirs
    notes = write(source / "notes.txt", "hello")
    replicator = Replicator(make_request(r".*", dest=destination / "missing"))

    with caplog.at_level(logging.ERROR, logger="watch_copy.copier"):
        rec = replicator.handle(modified(notes))

    assert not rec.success
    assert rec.error
    assert replicator.stats.failed == 1
    assert "Copy failed" in caplog.text


def test_failed_copy_does_not_stop_loop(dirs, make_request):
    source, destination = dirs
    vanished = source / "gone.txt"
    present = write(source / "present.txt", "still here")
    replicator = Replicator(make_request(r"\.txt$"))

    stats = replicator.run(receiver_for(modified(vanished), modified(present)))

    assert stats.failed == 1
    assert stats.copied == 1
    assert (destination / "present.txt").read_text(encoding="utf-8") == "still here"


def test_malformed_event_is_skipped(dirs, make_request, caplog):
    source, destination = dirs
    notes = write(source / "notes.txt", "hello")
    replicator = Replicator(make_request(r".*"))

    with caplog.at_level(logging.WARNING, logger="watch_copy.copier"):
        stats = replicator.run(
            receiver_for(ChangeEvent(EventKind.MODIFIED, ()), modified(notes))
        )

    assert stats.malformed == 1
    assert stats.copied == 1
    assert "malformed" in caplog.text


def test_watch_error_is_logged_and_loop_continues(dirs, make_request, caplog):
    source, destination = dirs
    notes = write(source / "notes.txt", "hello")
    replicator = Replicator(make_request(r".*"))

    with caplog.at_level(logging.ERROR, logger="watch_copy.copier"):
        stats = replicator.run(receiver_for(WatchError("queue overflow"), modified(notes)))

    assert stats.watch_errors == 1
    assert stats.copied == 1
    assert "queue overflow" in caplog.text


def test_events_processed_in_order(dirs, make_request):
    source, destination = dirs
    files = [write(source / f"f{i}.txt", str(i)) for i in range(5)]
    replicator = Replicator(make_request(r"\.txt$"))

    stats = replicator.run(receiver_for(*(modified(f) for f in files)))

    assert [rec.source for rec in stats.history] == [str(f) for f in files]
