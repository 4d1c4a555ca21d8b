"""Screenshot plan model and loader.

A plan is a versioned JSON document::

    {
      "version": 1,
      "app": {"bundle_id": "com.example.app", "udid": "booted", "output_dir": "./screenshots/raw"},
      "defaults": {"post_action_delay_ms": 500},
      "steps": [
        {"action": "launch"},
        {"action": "wait_for", "label": "Home", "timeout_ms": 10000},
        {"action": "tap", "id": "settings-button"},
        {"action": "screenshot", "name": "settings"}
      ]
    }

Each step is parsed into one frozen dataclass per action. Fields that do not
belong to the action are ignored; fields that do are type-checked, never
coerced.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Union


PLAN_VERSION = 1
DEFAULT_PLAN_PATH = Path(".asc") / "screenshots.json"
DEFAULT_OUTPUT_DIR = "./screenshots/raw"
BOOTED_DEVICE = "booted"


class PlanValidationError(ValueError):
    pass


@dataclass(frozen=True)
class PlanApp:
    bundle_id: str
    udid: str = ""
    output_dir: str = ""

    @property
    def resolved_udid(self) -> str:
        return self.udid.strip() or BOOTED_DEVICE

    @property
    def resolved_output_dir(self) -> str:
        return self.output_dir.strip() or DEFAULT_OUTPUT_DIR


@dataclass(frozen=True)
class PlanDefaults:
    post_action_delay_ms: int = 0


@dataclass(frozen=True)
class TapSelector:
    kind: str  # "label" | "id" | "point"
    label: str | None = None
    element_id: str | None = None
    x: float | None = None
    y: float | None = None

    def describe(self) -> str:
        if self.kind == "label":
            return f"label={self.label}"
        if self.kind == "id":
            return f"id={self.element_id}"
        return f"x={self.x},y={self.y}"


@dataclass(frozen=True)
class UiTarget:
    element_id: str = ""
    label: str = ""
    contains: str = ""

    def is_empty(self) -> bool:
        return not (self.element_id or self.label or self.contains)


@dataclass(frozen=True)
class LaunchStep:
    action = "launch"


@dataclass(frozen=True)
class TapStep:
    selector: TapSelector
    action = "tap"


@dataclass(frozen=True)
class TypeStep:
    text: str
    action = "type"


@dataclass(frozen=True)
class KeySequenceStep:
    keycodes: tuple[int, ...]
    action = "key_sequence"


@dataclass(frozen=True)
class WaitStep:
    duration_ms: int
    action = "wait"


@dataclass(frozen=True)
class WaitForStep:
    target: UiTarget
    timeout_ms: int | None = None
    poll_interval_ms: int | None = None
    action = "wait_for"


@dataclass(frozen=True)
class ScreenshotStep:
    name: str
    action = "screenshot"


PlanStep = Union[LaunchStep, TapStep, TypeStep, KeySequenceStep, WaitStep, WaitForStep, ScreenshotStep]

WAIT_ACTIONS = frozenset({"wait", "wait_for"})


@dataclass(frozen=True)
class Plan:
    version: int
    app: PlanApp
    defaults: PlanDefaults = field(default_factory=PlanDefaults)
    steps: tuple[PlanStep, ...] = ()


def load_plan(path: Path) -> Plan:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise PlanValidationError(f"plan file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise PlanValidationError(f"parse plan JSON {path}: {exc}") from exc
    return parse_plan(payload)


def parse_plan(payload: Any) -> Plan:
    if not isinstance(payload, Mapping):
        raise PlanValidationError("plan must be a JSON object")
    version = payload.get("version")
    if not _is_int(version):
        raise PlanValidationError("plan version must be an integer")

    app_payload = payload.get("app")
    if not isinstance(app_payload, Mapping):
        raise PlanValidationError("plan app section is required")
    app = PlanApp(
        bundle_id=_optional_str(app_payload, "bundle_id", "app") or "",
        udid=_optional_str(app_payload, "udid", "app") or "",
        output_dir=_optional_str(app_payload, "output_dir", "app") or "",
    )

    defaults_payload = payload.get("defaults") or {}
    if not isinstance(defaults_payload, Mapping):
        raise PlanValidationError("plan defaults must be an object")
    delay = _optional_int(defaults_payload, "post_action_delay_ms", "defaults")
    if delay is not None and delay < 0:
        raise PlanValidationError("defaults: post_action_delay_ms must be >= 0")
    defaults = PlanDefaults(post_action_delay_ms=delay or 0)

    steps_payload = payload.get("steps")
    if not isinstance(steps_payload, list):
        raise PlanValidationError("plan steps must be a list")
    steps = tuple(parse_step(item, index) for index, item in enumerate(steps_payload, start=1))

    plan = Plan(version=int(version), app=app, defaults=defaults, steps=steps)
    validate_plan(plan)
    return plan


def validate_plan(plan: Plan | None) -> Plan:
    if plan is None:
        raise PlanValidationError("plan is required")
    if plan.version != PLAN_VERSION:
        raise PlanValidationError(f"unsupported plan version {plan.version} (expected {PLAN_VERSION})")
    if any(isinstance(step, LaunchStep) for step in plan.steps) and not plan.app.bundle_id.strip():
        raise PlanValidationError("app.bundle_id is required when the plan has a launch step")
    return plan


def parse_step(payload: Any, index: int) -> PlanStep:
    if not isinstance(payload, Mapping):
        raise PlanValidationError(f"step {index}: must be an object")
    raw_action = payload.get("action")
    if not isinstance(raw_action, str) or not raw_action.strip():
        raise PlanValidationError(f"step {index}: action is required")
    action = raw_action.strip().lower()
    where = f"step {index} ({action})"

    if action == "launch":
        return LaunchStep()
    if action == "tap":
        return TapStep(selector=_parse_tap_selector(payload, where))
    if action == "type":
        text = _optional_str(payload, "text", where)
        if text is None:
            raise PlanValidationError(f"{where}: text is required")
        return TypeStep(text=text)
    if action == "key_sequence":
        keycodes = payload.get("keycodes")
        if not isinstance(keycodes, list) or not keycodes:
            raise PlanValidationError(f"{where}: keycodes must be a non-empty list")
        if not all(_is_int(code) for code in keycodes):
            raise PlanValidationError(f"{where}: keycodes must be integers")
        return KeySequenceStep(keycodes=tuple(int(code) for code in keycodes))
    if action == "wait":
        duration = _optional_int(payload, "duration_ms", where)
        if duration is None or duration < 0:
            raise PlanValidationError(f"{where}: duration_ms must be >= 0")
        return WaitStep(duration_ms=duration)
    if action == "wait_for":
        target = UiTarget(
            element_id=(_optional_str(payload, "id", where) or "").strip(),
            label=(_optional_str(payload, "label", where) or "").strip(),
            contains=(_optional_str(payload, "contains", where) or "").strip(),
        )
        if target.is_empty():
            raise PlanValidationError(f"{where}: one of id, label, or contains is required")
        return WaitForStep(
            target=target,
            timeout_ms=_optional_int(payload, "timeout_ms", where),
            poll_interval_ms=_optional_int(payload, "poll_interval_ms", where),
        )
    if action == "screenshot":
        name = (_optional_str(payload, "name", where) or "").strip()
        if not name:
            raise PlanValidationError(f"{where}: name is required")
        if not is_plain_file_name(name):
            raise PlanValidationError(f"{where}: name must be a file name without path separators")
        return ScreenshotStep(name=name)
    raise PlanValidationError(f"{where}: unsupported action {raw_action!r}")


def is_plain_file_name(name: str) -> bool:
    if name in {".", ".."}:
        return False
    return "/" not in name and "\\" not in name


def _parse_tap_selector(payload: Mapping[str, Any], where: str) -> TapSelector:
    label = (_optional_str(payload, "label", where) or "").strip()
    if label:
        return TapSelector(kind="label", label=label)
    element_id = (_optional_str(payload, "id", where) or "").strip()
    if element_id:
        return TapSelector(kind="id", element_id=element_id)
    x = _optional_number(payload, "x", where)
    y = _optional_number(payload, "y", where)
    if x is None and y is None:
        raise PlanValidationError(f"{where}: one of label, id, or x/y is required")
    if x is None or y is None:
        raise PlanValidationError(f"{where}: both x and y are required for coordinate taps")
    return TapSelector(kind="point", x=x, y=y)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _optional_str(payload: Mapping[str, Any], key: str, where: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise PlanValidationError(f"{where}: {key} must be a string")
    return value


def _optional_int(payload: Mapping[str, Any], key: str, where: str) -> int | None:
    value = payload.get(key)
    if value is None:
        return None
    if not _is_int(value):
        raise PlanValidationError(f"{where}: {key} must be an integer")
    return int(value)


def _optional_number(payload: Mapping[str, Any], key: str, where: str) -> float | None:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PlanValidationError(f"{where}: {key} must be a number")
    return float(value)
