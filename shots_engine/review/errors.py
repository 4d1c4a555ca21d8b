"""Review pipeline errors."""

from __future__ import annotations


class ReviewError(RuntimeError):
    pass


class ReviewValidationError(ReviewError, ValueError):
    pass
