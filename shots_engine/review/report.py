"""Render the review manifest to a static HTML report."""

from __future__ import annotations

import html
import os
from pathlib import Path
from urllib.parse import quote

from .errors import ReviewError
from .manifest import (
    STATUS_INVALID_SIZE,
    STATUS_MISSING_RAW,
    STATUS_MISSING_RAW_INVALID_SIZE,
    STATUS_READY,
    ReviewEntry,
    ReviewManifest,
)

DEFAULT_HTML_NAME = "index.html"

_STATUS_CLASSES = {
    STATUS_READY: "status-ready",
    STATUS_MISSING_RAW: "status-missing",
    STATUS_INVALID_SIZE: "status-invalid",
    STATUS_MISSING_RAW_INVALID_SIZE: "status-invalid",
}


def local_file_url(path: str) -> str:
    """Absolute path-only URL for ``src``/``href``.

    ``file://`` URLs are avoided; a bare absolute path resolves against the
    report's own ``file:`` origin when opened locally.
    """
    if not path.strip():
        return ""
    absolute = os.path.abspath(path)
    url_path = absolute.replace(os.sep, "/")
    if len(url_path) >= 3 and url_path[1] == ":" and url_path[2] == "/" and url_path[0].isalpha():
        url_path = "/" + url_path
    return quote(url_path, safe="/:")


def _e(value: object) -> str:
    return html.escape(str(value), quote=True)


def _code_or_dash(value: str) -> str:
    if value:
        return f"<code>{_e(value)}</code>"
    return "<span class='missing'>-</span>"


def _image_cell(path: str, relative: str, label: str) -> str:
    url = _e(local_file_url(path))
    return (
        f"<a href='{url}' target='_blank' rel='noopener'>"
        f"<img class='shot' src='{url}' alt='{_e(label)}'></a><br>"
        f"<code>{_e(relative)}</code>"
    )


def _render_row(entry: ReviewEntry) -> str:
    status_class = _STATUS_CLASSES.get(entry.status, "status-invalid")
    approval_class = "approval-approved" if entry.approved else "approval-pending"
    if entry.display_types:
        display_types = "<br>".join(f"<code>{_e(value)}</code>" for value in entry.display_types)
    else:
        display_types = "<span class='missing'>none</span>"
    if entry.raw_path:
        raw_cell = _image_cell(entry.raw_path, entry.raw_relative_path, f"raw {entry.screenshot_id}")
    else:
        raw_cell = "<span class='missing'>missing</span>"
    framed_cell = _image_cell(entry.framed_path, entry.framed_relative_path, f"framed {entry.screenshot_id}")
    return (
        "<tr>"
        f"<td><code>{_e(entry.screenshot_id)}</code></td>"
        f"<td>{_code_or_dash(entry.locale)}</td>"
        f"<td>{_code_or_dash(entry.device)}</td>"
        f"<td><span class='{status_class}'>{_e(entry.status)}</span></td>"
        f"<td><span class='{approval_class}'>{_e(entry.approval_state)}</span></td>"
        f"<td><code>{entry.width}x{entry.height}</code></td>"
        f"<td>{display_types}</td>"
        f"<td>{raw_cell}</td>"
        f"<td>{framed_cell}</td>"
        "</tr>"
    )


def render_review_html(manifest: ReviewManifest) -> str:
    summary = manifest.summary
    rows = "\n      ".join(_render_row(entry) for entry in manifest.entries)
    raw_line = f"Raw: <code>{_e(manifest.raw_dir)}</code><br>" if manifest.raw_dir else ""
    cards = "".join(
        f"<div class='card'><div class='label'>{label}</div><div class='value'>{value}</div></div>"
        for label, value in (
            ("Total", summary.total),
            ("Ready", summary.ready),
            ("Missing Raw", summary.missing_raw),
            ("Invalid Size", summary.invalid_size),
            ("Approved", summary.approved),
            ("Pending", summary.pending_approval),
        )
    )
    return f"""<!doctype html>
<html lang='en'>
<head>
  <meta charset='utf-8'>
  <meta name='viewport' content='width=device-width, initial-scale=1'>
  <title>Shots Review</title>
  <style>
    body {{ font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; margin: 20px; color: #1f2937; }}
    h1 {{ margin: 0 0 8px 0; }}
    .meta {{ margin-bottom: 18px; color: #4b5563; font-size: 14px; }}
    .summary {{ display: grid; grid-template-columns: repeat(6, minmax(120px, 1fr)); gap: 8px; margin-bottom: 18px; }}
    .card {{ border: 1px solid #e5e7eb; border-radius: 8px; padding: 10px; background: #ffffff; }}
    .label {{ font-size: 12px; color: #6b7280; text-transform: uppercase; letter-spacing: 0.04em; }}
    .value {{ font-size: 22px; font-weight: 700; margin-top: 4px; }}
    table {{ width: 100%; border-collapse: collapse; }}
    th, td {{ border: 1px solid #e5e7eb; padding: 8px; vertical-align: top; text-align: left; font-size: 13px; }}
    th {{ background: #f9fafb; position: sticky; top: 0; z-index: 1; }}
    .status-ready, .approval-approved {{ color: #166534; font-weight: 600; }}
    .status-missing {{ color: #92400e; font-weight: 600; }}
    .status-invalid {{ color: #991b1b; font-weight: 600; }}
    .approval-pending {{ color: #6b7280; font-weight: 600; }}
    .shot {{ max-height: 340px; max-width: 220px; border: 1px solid #d1d5db; border-radius: 8px; }}
    .missing {{ color: #9ca3af; font-style: italic; }}
    code {{ font-family: ui-monospace, SFMono-Regular, Menlo, monospace; }}
  </style>
</head>
<body>
  <h1>Shots Review</h1>
  <div class='meta'>
    Generated at {_e(manifest.generated_at)}<br>
    Framed: <code>{_e(manifest.framed_dir)}</code><br>
    {raw_line}
    Manifest: <code>{_e(manifest.output_dir)}/manifest.json</code>
  </div>
  <div class='summary'>{cards}</div>
  <table>
    <thead>
      <tr><th>ID</th><th>Locale</th><th>Device</th><th>Status</th><th>Approval</th><th>Dimensions</th><th>Display Types</th><th>Raw</th><th>Framed</th></tr>
    </thead>
    <tbody>
      {rows}
    </tbody>
  </table>
</body>
</html>
"""


def write_review_html(manifest: ReviewManifest, out_path: Path) -> Path:
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(render_review_html(manifest), encoding="utf-8")
    except OSError as exc:
        raise ReviewError(f"write review HTML {out_path}: {exc}") from exc
    return out_path
