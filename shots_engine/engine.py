"""Plan execution engine."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable

from .backends.base import AutomationBackend
from .plan import (
    WAIT_ACTIONS,
    KeySequenceStep,
    LaunchStep,
    Plan,
    PlanStep,
    PlanValidationError,
    ScreenshotStep,
    TapStep,
    TypeStep,
    WaitForStep,
    WaitStep,
    validate_plan,
)
from .runs.events import EventWriter
from .runs.summary import STATUS_ERROR, RunResult, StepResult
from .ui_tree import tree_matches
from .utils import elapsed_ms

DEFAULT_WAIT_FOR_TIMEOUT_MS = 15000
DEFAULT_WAIT_FOR_POLL_MS = 400


class WaitForTimeoutError(RuntimeError):
    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"wait_for timed out after {timeout_ms}ms")


class PlanRunError(RuntimeError):
    """Base for failures that still carry the partial run result."""

    def __init__(self, message: str, result: RunResult | None = None) -> None:
        super().__init__(message)
        self.result = result


class PlanStepError(PlanRunError):
    def __init__(self, index: int, action: str, cause: BaseException, result: RunResult) -> None:
        super().__init__(f"step {index} ({action}): {cause}", result)
        self.index = index
        self.action = action


class PlanCancelledError(PlanRunError):
    def __init__(self, result: RunResult | None = None) -> None:
        super().__init__("plan cancelled", result)


class PlanEngine:
    def __init__(
        self,
        backend: AutomationBackend,
        events: EventWriter | None = None,
        cancel: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.backend = backend
        self.events = events
        self.cancel = cancel or threading.Event()
        self.clock = clock

    def run(self, plan: Plan | None) -> RunResult:
        plan = validate_plan(plan)
        output_dir = _resolve_output_dir(plan.app.resolved_output_dir)
        udid = plan.app.resolved_udid
        result = RunResult(
            bundle_id=plan.app.bundle_id,
            udid=udid,
            output_dir=str(output_dir),
        )
        self._emit("plan_started", bundle_id=plan.app.bundle_id, udid=udid, output_dir=output_dir, steps=len(plan.steps))

        delay_ms = plan.defaults.post_action_delay_ms
        for index, step in enumerate(plan.steps, start=1):
            started = time.monotonic()
            step_result = StepResult(index=index, action=step.action)
            self._emit("step_started", index=index, action=step.action)
            try:
                self._run_step(step, plan.app.bundle_id, udid, output_dir)
            except PlanCancelledError as exc:
                self._fail_step(result, step_result, started, "cancelled")
                self._emit("plan_cancelled", index=index, action=step.action)
                exc.result = result
                raise
            except Exception as exc:
                self._fail_step(result, step_result, started, str(exc))
                self._emit("plan_failed", index=index, action=step.action, error=str(exc))
                raise PlanStepError(index, step.action, exc, result) from exc
            step_result.duration_ms = elapsed_ms(started)
            result.steps.append(step_result)
            self._emit("step_finished", index=index, action=step.action, duration_ms=step_result.duration_ms)

            if delay_ms > 0 and step.action not in WAIT_ACTIONS:
                try:
                    self._sleep_ms(delay_ms)
                except PlanCancelledError as exc:
                    self._emit("plan_cancelled", index=index, action=step.action)
                    exc.result = result
                    raise

        self._emit("plan_finished", steps=len(result.steps))
        return result

    def _run_step(self, step: PlanStep, bundle_id: str, udid: str, output_dir: Path) -> None:
        if self.cancel.is_set():
            raise PlanCancelledError()
        if isinstance(step, LaunchStep):
            self.backend.launch(udid, bundle_id)
        elif isinstance(step, TapStep):
            self.backend.tap(udid, step.selector)
        elif isinstance(step, TypeStep):
            self.backend.type_text(udid, step.text)
        elif isinstance(step, KeySequenceStep):
            self.backend.send_keys(udid, step.keycodes)
        elif isinstance(step, WaitStep):
            self._sleep_ms(step.duration_ms)
        elif isinstance(step, WaitForStep):
            self._wait_for(step, udid)
        elif isinstance(step, ScreenshotStep):
            # Capture the current session only; launching is always its own step.
            self.backend.screenshot(udid, output_dir / f"{step.name}.png")
        else:
            raise PlanValidationError(f"unsupported step {step!r}")

    def _wait_for(self, step: WaitForStep, udid: str) -> None:
        timeout_ms = step.timeout_ms if step.timeout_ms and step.timeout_ms > 0 else DEFAULT_WAIT_FOR_TIMEOUT_MS
        poll_ms = step.poll_interval_ms if step.poll_interval_ms and step.poll_interval_ms > 0 else DEFAULT_WAIT_FOR_POLL_MS
        deadline = self.clock() + timeout_ms / 1000.0
        attempts = 0
        while True:
            attempts += 1
            tree = self.backend.describe_ui(udid)
            if tree_matches(tree, step.target):
                self._emit("wait_for_matched", attempts=attempts)
                return
            if self.clock() >= deadline:
                raise WaitForTimeoutError(timeout_ms)
            self._sleep_ms(poll_ms)

    def _sleep_ms(self, duration_ms: int) -> None:
        if duration_ms <= 0:
            if self.cancel.is_set():
                raise PlanCancelledError()
            return
        if self.cancel.wait(duration_ms / 1000.0):
            raise PlanCancelledError()

    def _fail_step(self, result: RunResult, step_result: StepResult, started: float, message: str) -> None:
        step_result.status = STATUS_ERROR
        step_result.error = message
        step_result.duration_ms = elapsed_ms(started)
        result.steps.append(step_result)
        self._emit("step_failed", index=step_result.index, action=step_result.action, error=message)

    def _emit(self, event_type: str, **payload: object) -> None:
        if self.events is not None:
            self.events.emit(event_type, **payload)


def run_plan(
    plan: Plan | None,
    backend: AutomationBackend,
    cancel: threading.Event | None = None,
    events: EventWriter | None = None,
) -> RunResult:
    return PlanEngine(backend, events=events, cancel=cancel).run(plan)


def _resolve_output_dir(raw: str) -> Path:
    try:
        output_dir = Path(raw).expanduser().resolve()
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PlanValidationError(f"create output dir {raw!r}: {exc}") from exc
    return output_dir
