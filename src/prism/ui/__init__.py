"""UI components for Prism CLI."""

from prism.ui.console import InteractiveInterface

__all__ = ["InteractiveInterface"]
