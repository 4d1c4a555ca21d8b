"""One-off screenshot capture outside of a plan."""

from __future__ import annotations

from pathlib import Path

from .backends.base import AutomationBackend
from .plan import BOOTED_DEVICE, DEFAULT_OUTPUT_DIR, is_plain_file_name


class CaptureError(ValueError):
    pass


def resolve_capture_path(name: str, output_dir: str | Path | None = None) -> Path:
    clean = (name or "").strip()
    if not clean:
        raise CaptureError("--name is required")
    if not is_plain_file_name(clean):
        raise CaptureError(f"--name must be a file name without path separators (got {clean!r})")
    base = Path(output_dir or DEFAULT_OUTPUT_DIR).expanduser().resolve()
    return base / f"{clean}.png"


def capture(
    backend: AutomationBackend,
    name: str,
    output_dir: str | Path | None = None,
    udid: str | None = None,
    bundle_id: str | None = None,
) -> Path:
    """Optionally launch ``bundle_id`` and capture ``<output_dir>/<name>.png``."""
    path = resolve_capture_path(name, output_dir)
    device = (udid or "").strip() or BOOTED_DEVICE
    bundle = (bundle_id or "").strip()
    if bundle:
        backend.launch(device, bundle)
    return backend.screenshot(device, path)
