from __future__ import annotations

import threading
import time

import pytest

from shots_engine.watch.coalescer import GenerationCoalescer


def _wait_until(predicate, timeout_s: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_triggers_during_a_run_collapse_into_one_rerun() -> None:
    release = threading.Event()
    lock = threading.Lock()
    active = 0
    max_active = 0
    calls = 0

    def rebuild() -> None:
        nonlocal active, max_active, calls
        with lock:
            active += 1
            calls += 1
            max_active = max(max_active, active)
            first = calls == 1
        if first:
            release.wait(2.0)
        with lock:
            active -= 1

    coalescer = GenerationCoalescer(rebuild)
    owner = threading.Thread(target=coalescer.trigger)
    owner.start()
    assert _wait_until(lambda: calls == 1)

    extras = [threading.Thread(target=coalescer.trigger) for _ in range(3)]
    for thread in extras:
        thread.start()
    for thread in extras:
        thread.join(2.0)
    release.set()
    owner.join(2.0)

    assert calls == 2
    assert coalescer.runs == 2
    assert max_active == 1
    assert not coalescer.running


def test_failure_releases_ownership() -> None:
    attempts = 0

    def rebuild() -> None:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("boom")

    coalescer = GenerationCoalescer(rebuild)
    with pytest.raises(RuntimeError, match="boom"):
        coalescer.trigger()
    assert not coalescer.running

    coalescer.trigger()
    assert attempts == 2
    assert coalescer.runs == 2


def test_failed_run_still_reruns_for_triggers_made_during_it() -> None:
    release = threading.Event()
    calls = 0
    owner_errors: list[BaseException] = []

    def rebuild() -> None:
        nonlocal calls
        calls += 1
        if calls == 1:
            release.wait(2.0)
            raise RuntimeError("first run failed")

    coalescer = GenerationCoalescer(rebuild)

    def own() -> None:
        try:
            coalescer.trigger()
        except RuntimeError as exc:
            owner_errors.append(exc)

    owner = threading.Thread(target=own)
    owner.start()
    assert _wait_until(lambda: calls == 1)

    coalescer.trigger()
    release.set()
    owner.join(2.0)

    assert calls == 2
    assert coalescer.runs == 2
    assert owner_errors == []
    assert not coalescer.running


def test_last_failure_propagates_after_rerun() -> None:
    release = threading.Event()
    calls = 0
    owner_errors: list[BaseException] = []

    def rebuild() -> None:
        nonlocal calls
        calls += 1
        if calls == 1:
            release.wait(2.0)
        raise RuntimeError(f"run {calls} failed")

    coalescer = GenerationCoalescer(rebuild)

    def own() -> None:
        try:
            coalescer.trigger()
        except RuntimeError as exc:
            owner_errors.append(exc)

    owner = threading.Thread(target=own)
    owner.start()
    assert _wait_until(lambda: calls == 1)
    coalescer.trigger()
    release.set()
    owner.join(2.0)

    assert calls == 2
    assert [str(exc) for exc in owner_errors] == ["run 2 failed"]
    assert not coalescer.running
