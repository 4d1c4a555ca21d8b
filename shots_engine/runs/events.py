"""Append-only plan/review events stream (JSONL)."""

from __future__ import annotations

import json
import threading
import uuid
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any, Callable

from ..utils import now_utc_iso, serialize


@dataclass
class EventWriter:
    """Writes one JSON object per line; ``path=None`` keeps events in memory only.

    ``listener`` sees every event after it is recorded (the CLI uses it to
    drive progress output).
    """

    path: Path | None
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    listener: Callable[[dict[str, Any]], None] | None = field(default=None, repr=False)
    history: list[dict[str, Any]] = field(default_factory=list, repr=False, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, init=False)

    def emit(self, event_type: str, **payload: Any) -> dict[str, Any]:
        event = {
            "type": event_type,
            "run_id": self.run_id,
            "ts": now_utc_iso(),
        }
        event.update(serialize(payload))
        with self._lock:
            self.history.append(event)
            if self.path is not None:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as handle:
                    handle.write(f"{json.dumps(event)}\n")
        if self.listener is not None:
            self.listener(event)
        return event

    def types(self) -> list[str]:
        with self._lock:
            return [event["type"] for event in self.history]
