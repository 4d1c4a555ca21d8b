"""Automation backend registry."""

from __future__ import annotations

from .axe import AxeBackend
from .base import AutomationBackend, BackendRegistry, CommandError
from .dryrun import DryRunBackend


def default_registry() -> BackendRegistry:
    return BackendRegistry(
        [
            AxeBackend(),
            DryRunBackend(),
        ]
    )


__all__ = ["AutomationBackend", "AxeBackend", "BackendRegistry", "CommandError", "DryRunBackend", "default_registry"]
