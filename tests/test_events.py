from __future__ import annotations

import json
from pathlib import Path

from shots_engine.runs.events import EventWriter


def test_event_writer_appends_jsonl(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "events.jsonl"
    writer = EventWriter(path, run_id="run-123")
    writer.emit("plan_started", output_dir=tmp_path, steps=2)
    writer.emit("plan_finished", steps=2)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["type"] == "plan_started"
    assert first["run_id"] == "run-123"
    assert first["output_dir"] == str(tmp_path)
    assert "ts" in first
    assert writer.types() == ["plan_started", "plan_finished"]


def test_event_writer_without_path_keeps_history_and_notifies(tmp_path: Path) -> None:
    seen: list[dict] = []
    writer = EventWriter(None, listener=seen.append)
    event = writer.emit("step_started", index=1, action="launch")
    assert seen == [event]
    assert writer.history == [event]
    assert list(tmp_path.iterdir()) == []
