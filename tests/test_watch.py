"""Tests for the save watcher."""

from __future__ import annotations

import os
from pathlib import Path

from errsimplifier.watch import FileWatcher


def _touch(path: Path, mtime: float) -> None:
    os.utime(path, (mtime, mtime))


def test_watcher_fires_once_per_save(tmp_path: Path) -> None:
    source = tmp_path / "Main.java"
    source.write_text("class Main {}", encoding="utf-8")
    _touch(source, 1_000_000)
    seen: list[Path] = []

    watcher = FileWatcher(source, seen.append, interval=0)

    assert watcher.poll_once() is False
    _touch(source, 1_000_010)
    assert watcher.poll_once() is True
    assert watcher.poll_once() is False
    assert seen == [source]


def test_watcher_run_counts_invocations(tmp_path: Path) -> None:
    source = tmp_path / "Main.java"
    source.write_text("class Main {}", encoding="utf-8")
    _touch(source, 1_000_000)
    seen: list[Path] = []
    sleeps: list[float] = []
    mtimes = iter([1_000_005, 1_000_005, 1_000_009])

    def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)
        next_mtime = next(mtimes, None)
        if next_mtime is not None:
            _touch(source, next_mtime)

    watcher = FileWatcher(source, seen.append, interval=0.5, sleep=fake_sleep)

    runs = watcher.run(max_iterations=4)

    assert runs == 2
    assert sleeps == [0.5] * 4
    assert seen == [source, source]


def test_watcher_ignores_missing_file(tmp_path: Path) -> None:
    seen: list[Path] = []
    watcher = FileWatcher(tmp_path / "Gone.java", seen.append)

    assert watcher.poll_once() is False
    assert seen == []
