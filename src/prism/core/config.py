"""Configuration management for Prism."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from prism.utils.validation import ValidationError, validate_timeout, validate_url

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8080/api"
DEFAULT_TRAINING_TIMEOUT = 300.0
DEFAULT_REQUEST_TIMEOUT = 30.0


class SettingsManager:
    """Manages user settings and configuration."""

    def __init__(self, settings_dir: str | None = None):
        self.settings_dir = Path(settings_dir or Path.home() / ".prism")
        self.settings_file = self.settings_dir / "user-settings.json"

    def load_user_settings(self) -> dict[str, Any]:
        """Load user settings from file."""
        if not self.settings_file.exists():
            return {}

        try:
            with open(self.settings_file, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError):
            return {}

    def save_user_settings(self, settings: dict[str, Any]) -> None:
        """Save user settings to file."""
        try:
            self.settings_dir.mkdir(parents=True, exist_ok=True)
            with open(self.settings_file, "w", encoding="utf-8") as f:
                json.dump(settings, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save settings: {e}")

    def update_user_setting(self, key: str, value: Any) -> None:
        """Update a single user setting with validation.

        Args:
            key: Setting key to update
            value: Setting value

        Raises:
            ValidationError: If the value is invalid for the given key
        """
        if key == "apiUrl":
            value = validate_url(value)
        elif key in ("trainingTimeout", "requestTimeout"):
            value = validate_timeout(value, context=key)
        elif key == "verbose":
            if not isinstance(value, bool):
                raise ValidationError("verbose must be true or false")

        settings = self.load_user_settings()
        settings[key] = value
        self.save_user_settings(settings)

    def get_api_url(self) -> str:
        """Get backend base URL from environment or settings.

        Returns:
            Base URL, defaults to "http://localhost:8080/api" if not configured

        Note:
            Empty strings from environment variables are treated as not configured.
        """
        api_url = os.getenv("PRISM_API_URL")
        if api_url and api_url.strip():
            return api_url.strip().rstrip("/")

        settings = self.load_user_settings()
        api_url = settings.get("apiUrl")
        if api_url and api_url.strip():
            return api_url.strip().rstrip("/")

        return DEFAULT_API_URL

    def get_training_timeout(self) -> float:
        """Get the soft deadline for a training request, in seconds."""
        return self._get_seconds(
            "PRISM_TRAINING_TIMEOUT", "trainingTimeout", DEFAULT_TRAINING_TIMEOUT
        )

    def get_request_timeout(self) -> float:
        """Get the per-request transport timeout, in seconds."""
        return self._get_seconds(
            "PRISM_REQUEST_TIMEOUT", "requestTimeout", DEFAULT_REQUEST_TIMEOUT
        )

    def _get_seconds(self, env_var: str, key: str, default: float) -> float:
        raw = os.getenv(env_var)
        if not raw:
            raw = self.load_user_settings().get(key)
        if raw in (None, ""):
            return default

        try:
            return validate_timeout(raw, context=key)
        except ValidationError as e:
            logger.warning(f"{e.message}; using default of {default:g}s")
            return default

    def get_verbose_mode(self) -> bool:
        """Get verbose/debug mode setting.

        Returns:
            True if verbose mode is enabled via environment variable or settings

        Note:
            Checks PRISM_VERBOSE environment variable first, then settings file.
            Accepts: "1", "true", "yes" (case-insensitive)
        """
        verbose_env = os.getenv("PRISM_VERBOSE", "").lower()
        if verbose_env in ("1", "true", "yes"):
            return True

        settings = self.load_user_settings()
        return bool(settings.get("verbose", False))

    def get_session(self) -> dict[str, str | None]:
        """Get the persisted session token and username."""
        settings = self.load_user_settings()
        return {"token": settings.get("token"), "username": settings.get("username")}

    def save_session(self, token: str, username: str | None) -> None:
        """Persist the session token and username."""
        settings = self.load_user_settings()
        settings["token"] = token
        settings["username"] = username
        self.save_user_settings(settings)

    def clear_session(self) -> None:
        """Forget the persisted session."""
        settings = self.load_user_settings()
        if "token" not in settings and "username" not in settings:
            return
        settings.pop("token", None)
        settings.pop("username", None)
        self.save_user_settings(settings)
