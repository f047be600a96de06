"""Core components for Prism."""

from prism.core.client import PrismClient
from prism.core.config import SettingsManager
from prism.core.session import (
    CallbackNavigator,
    Navigator,
    NullNavigator,
    SessionStore,
    SettingsSessionStore,
)

__all__ = [
    "CallbackNavigator",
    "Navigator",
    "NullNavigator",
    "PrismClient",
    "SessionStore",
    "SettingsManager",
    "SettingsSessionStore",
]
