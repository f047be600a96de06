"""Session collaborators: credential storage and navigation on session loss."""

import logging
from collections.abc import Callable
from typing import Protocol

from prism.core.config import SettingsManager

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    """Capability the transport uses to send the user back to sign-in."""

    def to_login(self) -> None: ...


class NullNavigator:
    """Navigator that only logs; used when nothing needs to react."""

    def to_login(self) -> None:
        logger.info("Session ended; sign-in required")


class CallbackNavigator:
    """Navigator that forwards to a callable."""

    def __init__(self, callback: Callable[[], None]):
        self._callback = callback

    def to_login(self) -> None:
        self._callback()


class SessionStore:
    """In-memory bearer credential holder."""

    def __init__(self, token: str | None = None, username: str | None = None):
        self.token = token
        self.username = username

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def set(self, token: str, username: str | None = None) -> None:
        self.token = token
        self.username = username

    def clear(self) -> None:
        self.token = None
        self.username = None


class SettingsSessionStore(SessionStore):
    """Session store persisted through the user settings file."""

    def __init__(self, settings_manager: SettingsManager):
        self.settings_manager = settings_manager
        saved = settings_manager.get_session()
        super().__init__(saved["token"], saved["username"])

    def set(self, token: str, username: str | None = None) -> None:
        super().set(token, username)
        self.settings_manager.save_session(token, username)

    def clear(self) -> None:
        super().clear()
        self.settings_manager.clear_session()
