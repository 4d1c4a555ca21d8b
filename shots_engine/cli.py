"""shots CLI entrypoints."""

from __future__ import annotations

import argparse
import json
import sys
import threading
from pathlib import Path
from typing import Any

from .backends import default_registry
from .backends.base import AutomationBackend, CommandError
from .capture import CaptureError, capture
from .cli_progress import PlanProgress
from .engine import PlanEngine, PlanRunError
from .plan import DEFAULT_PLAN_PATH, PlanValidationError, load_plan
from .review.actions import approve_review, open_review
from .review.errors import ReviewError
from .review.generate import ReviewResult, generate_review, resolve_review_output_dir
from .runs.events import EventWriter
from .runs.summary import RunResult, write_run_summary
from .utils import getenv_flag, load_dotenv
from .watch.session import watch_review
from .watch.watcher import DEFAULT_DEBOUNCE_MS


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shots", description="Capture and review App Store screenshots")
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Execute a screenshot plan")
    run.add_argument("--plan", default=str(DEFAULT_PLAN_PATH), help="Plan JSON path")
    run.add_argument("--backend", default="axe", help="Automation backend (axe, dryrun)")
    run.add_argument("--events", help="Path to events.jsonl (default: <output_dir>/events.jsonl)")

    cap = sub.add_parser("capture", help="Capture a single screenshot")
    cap.add_argument("--name", required=True, help="Output file name without extension")
    cap.add_argument("--output-dir", dest="output_dir", default="./screenshots/raw")
    cap.add_argument("--udid", default="booted")
    cap.add_argument("--bundle-id", dest="bundle_id", help="Launch this app before capturing")
    cap.add_argument("--backend", default="axe")

    review = sub.add_parser("review", help="Generate and act on review artifacts")
    review_sub = review.add_subparsers(dest="review_command")

    generate = review_sub.add_parser("generate", help="Write manifest.json, index.html and approved.json")
    generate.add_argument("--framed-dir", dest="framed_dir", required=True)
    generate.add_argument("--raw-dir", dest="raw_dir")
    generate.add_argument("--output-dir", dest="output_dir")
    generate.add_argument("--approval-path", dest="approval_path")

    open_cmd = review_sub.add_parser("open", help="Open the HTML report")
    open_cmd.add_argument("--output-dir", dest="output_dir")
    open_cmd.add_argument("--dry-run", dest="dry_run", action="store_true")

    approve = review_sub.add_parser("approve", help="Approve manifest entries")
    approve.add_argument("--output-dir", dest="output_dir")
    approve.add_argument("--all-ready", dest="all_ready", action="store_true")
    approve.add_argument("--locale")
    approve.add_argument("--device")
    approve.add_argument("--approval-path", dest="approval_path")

    watch = review_sub.add_parser("watch", help="Regenerate review artifacts on change")
    watch.add_argument("--framed-dir", dest="framed_dir", required=True)
    watch.add_argument("--raw-dir", dest="raw_dir")
    watch.add_argument("--output-dir", dest="output_dir")
    watch.add_argument("--approval-path", dest="approval_path")
    watch.add_argument("--config", help="Koubou YAML config whose image assets are watched too")
    watch.add_argument("--debounce-ms", dest="debounce_ms", type=int, default=DEFAULT_DEBOUNCE_MS, help="Group changes within this window")
    watch.add_argument("--force-polling", dest="force_polling", action="store_true", help="Poll instead of using OS notifications")

    return parser


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _resolve_backend(name: str) -> AutomationBackend:
    backend = default_registry().get(name)
    if backend is None:
        raise ValueError(f"unknown backend {name!r} (available: {', '.join(default_registry().list())})")
    return backend


def _handle_run(args: argparse.Namespace) -> int:
    try:
        plan = load_plan(Path(args.plan))
        backend = _resolve_backend(args.backend)
    except (PlanValidationError, ValueError) as exc:
        print(f"Invalid plan: {exc}", file=sys.stderr)
        return 1

    output_dir = Path(plan.app.resolved_output_dir).expanduser()
    events_path = Path(args.events) if args.events else output_dir / "events.jsonl"
    progress = PlanProgress(len(plan.steps), stream=sys.stderr)
    events = EventWriter(events_path, listener=progress.handle_event)
    cancel = threading.Event()
    engine = PlanEngine(backend, events=events, cancel=cancel)

    outcome: dict[str, Any] = {}

    def _worker() -> None:
        try:
            outcome["result"] = engine.run(plan)
        except Exception as exc:
            outcome["error"] = exc

    progress.begin()
    worker = threading.Thread(target=_worker, daemon=True)
    worker.start()
    try:
        while worker.is_alive():
            worker.join(0.2)
    except KeyboardInterrupt:
        cancel.set()
        worker.join()
    error = outcome.get("error")
    progress.finish(ok=error is None)

    result: RunResult | None = outcome.get("result")
    if isinstance(error, PlanRunError):
        result = error.result
    if result is not None:
        write_run_summary(Path(result.output_dir) / "run.json", result, {"error": str(error) if error else None})
        _print_json(result.to_dict())
    if error is not None:
        print(f"Plan failed: {error}", file=sys.stderr)
        return 1
    return 0


def _handle_capture(args: argparse.Namespace) -> int:
    try:
        backend = _resolve_backend(args.backend)
        path = capture(backend, args.name, args.output_dir, udid=args.udid, bundle_id=args.bundle_id)
    except (CaptureError, CommandError, ValueError) as exc:
        print(f"Capture failed: {exc}", file=sys.stderr)
        return 1
    _print_json({"path": str(path)})
    return 0


def _print_review_result(result: ReviewResult) -> None:
    _print_json(result.to_dict())


def _handle_review(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    try:
        if args.review_command == "generate":
            _print_review_result(
                generate_review(
                    args.framed_dir,
                    raw_dir=args.raw_dir,
                    output_dir=args.output_dir,
                    approval_path=args.approval_path,
                )
            )
            return 0
        if args.review_command == "open":
            _print_json(open_review(args.output_dir, dry_run=args.dry_run).to_dict())
            return 0
        if args.review_command == "approve":
            result = approve_review(
                args.output_dir,
                all_ready=args.all_ready,
                locale=args.locale,
                device=args.device,
                approval_path=args.approval_path,
            )
            _print_json(result.to_dict())
            return 0
        if args.review_command == "watch":
            return _handle_review_watch(args)
    except ReviewError as exc:
        print(f"Review failed: {exc}", file=sys.stderr)
        return 1
    parser.print_help()
    return 1


def _handle_review_watch(args: argparse.Namespace) -> int:
    events = None
    if getenv_flag("SHOTS_EVENTS", False):
        events = EventWriter(resolve_review_output_dir(args.output_dir) / "watch-events.jsonl")

    def _on_result(result: ReviewResult) -> None:
        print(
            f"Regenerated review: {result.total} entries, {result.ready} ready, "
            f"{result.approved} approved -> {result.html_path}"
        )

    def _on_error(exc: Exception) -> None:
        print(f"Review regeneration failed: {exc}", file=sys.stderr)

    stop = threading.Event()
    print("Watching for changes (ctrl-c to stop)")
    try:
        watch_review(
            args.framed_dir,
            stop,
            raw_dir=args.raw_dir,
            output_dir=args.output_dir,
            approval_path=args.approval_path,
            config_path=args.config,
            debounce_ms=args.debounce_ms,
            force_polling=args.force_polling or None,
            on_result=_on_result,
            on_error=_on_error,
            events=events,
        )
    except KeyboardInterrupt:
        stop.set()
    return 0


def main() -> None:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args()
    if args.command == "run":
        raise SystemExit(_handle_run(args))
    if args.command == "capture":
        raise SystemExit(_handle_capture(args))
    if args.command == "review":
        raise SystemExit(_handle_review(args, parser))
    parser.print_help()
    raise SystemExit(1)


if __name__ == "__main__":
    main()
