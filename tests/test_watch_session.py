from __future__ import annotations

import json
import threading
import time
from pathlib import Path

from PIL import Image

from shots_engine.runs.events import EventWriter
from shots_engine.watch.changes import OP_REMOVE, OP_WRITE, ChangeEvent
from shots_engine.watch.session import ReviewWatchSession, watch_review


def _image(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (1260, 2736)).save(path)
    return path


def _wait_until(predicate, timeout_s: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _write_config(path: Path, assets: list[str]) -> None:
    items = "".join(f"      - type: image\n        asset: {asset}\n" for asset in assets)
    path.write_text(f"screenshots:\n  home:\n    content:\n{items}", encoding="utf-8")


def _touch_until(path: Path, predicate, attempts: int = 20) -> bool:
    """Rewrite ``path`` until ``predicate`` holds; the watcher may still be starting."""
    for attempt in range(attempts):
        path.write_bytes(f"change {attempt}".encode("utf-8"))
        if _wait_until(predicate, 0.5):
            return True
    return False


def test_regenerate_writes_artifacts_and_reports(tmp_path: Path) -> None:
    framed = tmp_path / "framed"
    _image(framed / "en" / "home.png")
    results = []
    events = EventWriter(None)
    session = ReviewWatchSession(framed, output_dir=tmp_path / "review", on_result=results.append, events=events)

    session.regenerate()

    assert results[0].total == 1
    assert (tmp_path / "review" / "index.html").is_file()
    assert events.types() == ["review_generated"]


def test_regenerate_failure_goes_to_error_callback(tmp_path: Path) -> None:
    errors: list[Exception] = []
    session = ReviewWatchSession(tmp_path / "missing", output_dir=tmp_path / "review", on_error=errors.append)
    session.regenerate()
    assert len(errors) == 1
    assert "framed directory not found" in str(errors[0])


def test_config_asset_dirs_are_watched(tmp_path: Path) -> None:
    framed = tmp_path / "framed"
    framed.mkdir()
    config = tmp_path / "koubou.yaml"
    _write_config(config, ["assets/bg.png"])
    session = ReviewWatchSession(framed, output_dir=tmp_path / "review", config_path=config)
    assert str(tmp_path / "assets") in session.asset_dirs
    assert str(framed.absolute()) in session.asset_dirs
    assert session.watcher.roots == [str(framed.absolute()), str(tmp_path / "assets"), str(config)]


def test_config_rewrite_extends_watched_roots(tmp_path: Path) -> None:
    framed = tmp_path / "framed"
    framed.mkdir()
    config = tmp_path / "koubou.yaml"
    _write_config(config, ["assets/bg.png"])
    results = []
    events = EventWriter(None)
    session = ReviewWatchSession(
        framed, output_dir=tmp_path / "review", config_path=config, on_result=results.append, events=events
    )
    new_asset = tmp_path / "more" / "logo.png"
    assert not session.watcher.set_roots(session.watcher.roots)

    _write_config(config, ["assets/bg.png", "more/logo.png"])
    session.handle_event(ChangeEvent(str(config), OP_WRITE))

    assert str(new_asset.parent) in session.asset_dirs
    assert str(new_asset.parent) in session.watcher.roots
    assert "watch_roots_changed" in events.types()
    assert _wait_until(lambda: len(results) == 1)

    session.handle_event(ChangeEvent(str(new_asset), OP_WRITE))
    assert _wait_until(lambda: len(results) == 2)


def test_relevant_changes_trigger_regeneration(tmp_path: Path) -> None:
    framed = tmp_path / "framed"
    shot = _image(framed / "en" / "home.png")
    results = []
    session = ReviewWatchSession(framed, output_dir=tmp_path / "review", on_result=results.append)

    session.handle_event(ChangeEvent(str(shot), OP_REMOVE))
    session.handle_event(ChangeEvent(str(tmp_path / "elsewhere.png"), OP_WRITE))
    time.sleep(0.05)
    assert results == []

    session.handle_event(ChangeEvent(str(shot), OP_WRITE))
    assert _wait_until(lambda: len(results) == 1)


def test_run_generates_once_then_watches(tmp_path: Path) -> None:
    framed = tmp_path / "framed"
    _image(framed / "en" / "home.png")
    out = tmp_path / "review"
    results = []
    errors: list[Exception] = []
    session = ReviewWatchSession(
        framed,
        output_dir=out,
        debounce_ms=50,
        force_polling=True,
        on_result=results.append,
        on_error=errors.append,
    )
    stop = threading.Event()
    runner = threading.Thread(target=session.run, args=(stop,))
    runner.start()
    try:
        assert _wait_until(lambda: len(results) >= 1 and session.watcher.starts >= 1)
        before = len(results)
        assert _touch_until(framed / "en" / "notes.png", lambda: len(results) > before)
    finally:
        stop.set()
        runner.join(10.0)
    assert not runner.is_alive()
    manifest = json.loads((out / "manifest.json").read_text(encoding="utf-8"))
    assert manifest["summary"]["total"] >= 1


def test_running_session_picks_up_new_asset_dirs(tmp_path: Path) -> None:
    framed = tmp_path / "framed"
    framed.mkdir()
    config = tmp_path / "koubou.yaml"
    _write_config(config, ["assets/bg.png"])
    (tmp_path / "assets").mkdir()
    extra = tmp_path / "extra"
    extra.mkdir()
    results = []
    session = ReviewWatchSession(
        framed,
        output_dir=tmp_path / "review",
        config_path=config,
        debounce_ms=50,
        force_polling=True,
        on_result=results.append,
    )
    stop = threading.Event()
    runner = threading.Thread(target=session.run, args=(stop,))
    runner.start()
    try:
        assert _wait_until(lambda: len(results) >= 1 and session.watcher.starts >= 1)
        for _ in range(20):
            _write_config(config, ["assets/bg.png", "extra/logo.png"])
            if _wait_until(lambda: str(extra) in session.watcher.roots, 0.5):
                break
        assert _wait_until(lambda: session.watcher.starts >= 2)
        time.sleep(0.3)
        before = len(results)
        assert _touch_until(extra / "logo.png", lambda: len(results) > before)
    finally:
        stop.set()
        runner.join(10.0)
    assert not runner.is_alive()


def test_watch_review_returns_once_stopped(tmp_path: Path) -> None:
    framed = tmp_path / "framed"
    _image(framed / "home.png")
    stop = threading.Event()
    stop.set()
    results = []
    watch_review(framed, stop, output_dir=tmp_path / "review", on_result=results.append)
    assert [result.total for result in results] == [1]
