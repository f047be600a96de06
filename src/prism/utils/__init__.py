"""Utility modules for Prism."""

from prism.utils.validation import ValidationError

__all__ = [
    "ValidationError",
]
