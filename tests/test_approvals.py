from __future__ import annotations

import json
from pathlib import Path

import pytest

from shots_engine.review.approvals import load_approvals, save_approvals
from shots_engine.review.errors import ReviewError


@pytest.mark.parametrize(
    "payload",
    [
        {"en|iPhone_Air|home": True, "en|iPhone_Air|settings": False, " fr||home ": True},
        ["en|iPhone_Air|home", " fr||home ", ""],
        {"approved": ["fr||home", "en|iPhone_Air|home"]},
    ],
)
def test_load_accepts_every_ledger_shape(tmp_path: Path, payload: object) -> None:
    path = tmp_path / "approved.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    assert load_approvals(path) == {"en|iPhone_Air|home", "fr||home"}


def test_missing_ledger_is_empty(tmp_path: Path) -> None:
    assert load_approvals(tmp_path / "approved.json") == set()


def test_unrecognised_ledger_is_an_error(tmp_path: Path) -> None:
    path = tmp_path / "approved.json"
    path.write_text(json.dumps({"approved": "everything"}), encoding="utf-8")
    with pytest.raises(ReviewError, match="expected"):
        load_approvals(path)
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ReviewError, match="parse approvals file"):
        load_approvals(path)


def test_save_writes_sorted_canonical_shape(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "approved.json"
    keys = save_approvals(path, {"b||x", " a||y ", ""})
    assert keys == ["a||y", "b||x"]
    text = path.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert json.loads(text) == {"approved": ["a||y", "b||x"]}
    assert load_approvals(path) == {"a||y", "b||x"}


def test_wrapper_shape_tolerates_extra_keys(tmp_path: Path) -> None:
    path = tmp_path / "approved.json"
    path.write_text(json.dumps({"approved": ["en||home"], "generated_by": "shots", "strict": True}), encoding="utf-8")
    assert load_approvals(path) == {"en||home"}
