"""Plan run result model and ``run.json`` writer."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..utils import now_utc_iso, serialize, write_json

STATUS_OK = "ok"
STATUS_ERROR = "error"


@dataclass
class StepResult:
    index: int
    action: str
    status: str = STATUS_OK
    duration_ms: int = 0
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "index": self.index,
            "action": self.action,
            "status": self.status,
            "duration_ms": self.duration_ms,
        }
        if self.error:
            payload["error"] = self.error
        return payload


@dataclass
class RunResult:
    bundle_id: str
    udid: str
    output_dir: str
    steps: list[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(step.status == STATUS_OK for step in self.steps)

    def to_dict(self) -> dict[str, Any]:
        return {
            "bundle_id": self.bundle_id,
            "udid": self.udid,
            "output_dir": self.output_dir,
            "steps": [step.to_dict() for step in self.steps],
        }


def write_run_summary(path: Path, result: RunResult, extra: dict[str, Any] | None = None) -> None:
    payload = result.to_dict()
    payload["ok"] = result.ok
    payload["ts"] = now_utc_iso()
    if extra:
        payload.update(serialize(extra))
    write_json(path, payload)
