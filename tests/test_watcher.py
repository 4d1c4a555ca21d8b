from __future__ import annotations

import os
import threading
import time
from pathlib import Path

from watchfiles import Change

from shots_engine.watch.changes import OP_CREATE, OP_REMOVE, OP_WRITE, ChangeEvent
from shots_engine.watch.watcher import FileWatcher, to_change_events


def test_changes_map_to_classifier_ops() -> None:
    events = to_change_events(
        {
            (Change.modified, "/b.png"),
            (Change.added, "/d.png"),
            (Change.deleted, "/c.png"),
        }
    )
    assert events == [
        ChangeEvent("/b.png", OP_WRITE),
        ChangeEvent("/c.png", OP_REMOVE),
        ChangeEvent("/d.png", OP_CREATE),
    ]


def test_roots_are_normalized_and_deduplicated(tmp_path: Path) -> None:
    watcher = FileWatcher([tmp_path / "a", tmp_path / "a" / ".." / "a", tmp_path / "b"], lambda event: None)
    assert watcher.roots == [str(tmp_path / "a"), str(tmp_path / "b")]
    assert not watcher.set_roots([tmp_path / "a", tmp_path / "b"])
    assert watcher.set_roots([tmp_path / "b"])
    assert watcher.roots == [str(tmp_path / "b")]


def test_run_returns_when_every_root_is_missing(tmp_path: Path) -> None:
    stop = threading.Event()
    watcher = FileWatcher([tmp_path / "missing"], lambda event: None)
    timer = threading.Timer(0.1, stop.set)
    timer.start()
    started = time.monotonic()
    watcher.run(stop)
    timer.cancel()
    assert time.monotonic() - started < 5
    assert watcher.starts == 0


def test_run_delivers_file_changes(tmp_path: Path) -> None:
    seen: list[ChangeEvent] = []
    stop = threading.Event()
    watcher = FileWatcher([tmp_path], seen.append, debounce_ms=50, force_polling=True)
    runner = threading.Thread(target=watcher.run, args=(stop,))
    runner.start()
    target = tmp_path / "home.png"
    try:
        deadline = time.monotonic() + 10
        attempt = 0
        while time.monotonic() < deadline and not any(e.path == os.path.abspath(target) for e in seen):
            target.write_bytes(f"{attempt}".encode("utf-8"))
            attempt += 1
            time.sleep(0.4)
    finally:
        stop.set()
        runner.join(10.0)
    assert not runner.is_alive()
    assert {e.op for e in seen if e.path == os.path.abspath(target)} <= {OP_CREATE, OP_WRITE}
    assert any(e.path == os.path.abspath(target) for e in seen)
