"""Accessibility tree matching for wait_for steps.

``axe describe-ui`` emits arbitrary nested JSON. A node is any object; the
attributes consulted are ``AXUniqueId``, ``AXLabel`` and ``AXValue``.
"""

from __future__ import annotations

from typing import Any

from .plan import UiTarget

ID_KEY = "AXUniqueId"
LABEL_KEY = "AXLabel"
VALUE_KEY = "AXValue"


def tree_matches(tree: Any, target: UiTarget) -> bool:
    element_id = target.element_id.strip()
    label = target.label.strip()
    contains = target.contains.strip().casefold()
    return _node_matches(tree, element_id.casefold(), label.casefold(), contains)


def _node_matches(node: Any, element_id: str, label: str, contains: str) -> bool:
    if isinstance(node, dict):
        node_label = _text(node.get(LABEL_KEY)).casefold()
        if element_id and _text(node.get(ID_KEY)).casefold() == element_id:
            return True
        if label and node_label == label:
            return True
        if contains and (contains in node_label or contains in _text(node.get(VALUE_KEY)).casefold()):
            return True
        return any(_node_matches(value, element_id, label, contains) for value in node.values())
    if isinstance(node, list):
        return any(_node_matches(value, element_id, label, contains) for value in node)
    return False


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
