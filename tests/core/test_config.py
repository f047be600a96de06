"""Tests for settings resolution and session persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from prism.core.config import (
    DEFAULT_API_URL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TRAINING_TIMEOUT,
    SettingsManager,
)
from prism.core.session import SettingsSessionStore
from prism.utils.validation import ValidationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "PRISM_API_URL",
        "PRISM_TRAINING_TIMEOUT",
        "PRISM_REQUEST_TIMEOUT",
        "PRISM_VERBOSE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_settings_dir(tmp_path):
    """Create a temporary settings directory for testing."""
    return tmp_path / "test_prism_settings"


@pytest.fixture
def settings_manager(temp_settings_dir):
    """Create a SettingsManager instance with temporary settings directory."""
    return SettingsManager(settings_dir=str(temp_settings_dir))


def test_settings_dir_in_home_by_default():
    """Settings directory defaults to ~/.prism when not specified."""
    manager = SettingsManager()
    assert manager.settings_dir == Path.home() / ".prism"


def test_settings_dir_is_not_created_until_saved(settings_manager, temp_settings_dir):
    assert settings_manager.load_user_settings() == {}
    assert not temp_settings_dir.exists()

    settings_manager.save_user_settings({"verbose": True})

    saved = json.loads((temp_settings_dir / "user-settings.json").read_text())
    assert saved == {"verbose": True}


def test_defaults_when_nothing_configured(settings_manager):
    assert settings_manager.get_api_url() == DEFAULT_API_URL
    assert settings_manager.get_training_timeout() == DEFAULT_TRAINING_TIMEOUT
    assert settings_manager.get_request_timeout() == DEFAULT_REQUEST_TIMEOUT
    assert settings_manager.get_verbose_mode() is False


def test_env_overrides_settings_file(settings_manager, monkeypatch):
    settings_manager.save_user_settings(
        {"apiUrl": "http://from-file:8080/api", "trainingTimeout": 60}
    )
    monkeypatch.setenv("PRISM_API_URL", "https://from-env/api/")
    monkeypatch.setenv("PRISM_TRAINING_TIMEOUT", "120")

    assert settings_manager.get_api_url() == "https://from-env/api"
    assert settings_manager.get_training_timeout() == 120.0


def test_empty_env_value_falls_back_to_settings(settings_manager, monkeypatch):
    settings_manager.save_user_settings({"apiUrl": "http://from-file:8080/api"})
    monkeypatch.setenv("PRISM_API_URL", "  ")

    assert settings_manager.get_api_url() == "http://from-file:8080/api"


def test_invalid_timeout_uses_default(settings_manager, monkeypatch):
    monkeypatch.setenv("PRISM_TRAINING_TIMEOUT", "soon")

    assert settings_manager.get_training_timeout() == DEFAULT_TRAINING_TIMEOUT


@pytest.mark.parametrize("value", ["1", "true", "YES"])
def test_verbose_from_env(settings_manager, monkeypatch, value):
    monkeypatch.setenv("PRISM_VERBOSE", value)

    assert settings_manager.get_verbose_mode() is True


def test_update_user_setting_validates(settings_manager):
    settings_manager.update_user_setting("apiUrl", "https://xai.example.com/api/")
    assert settings_manager.load_user_settings()["apiUrl"] == "https://xai.example.com/api"

    with pytest.raises(ValidationError):
        settings_manager.update_user_setting("apiUrl", "ftp://nope")
    with pytest.raises(ValidationError):
        settings_manager.update_user_setting("trainingTimeout", -5)


def test_corrupt_settings_file_is_ignored(settings_manager, temp_settings_dir):
    temp_settings_dir.mkdir(parents=True)
    (temp_settings_dir / "user-settings.json").write_text("{not json")

    assert settings_manager.load_user_settings() == {}


def test_session_persistence(settings_manager):
    settings_manager.update_user_setting("verbose", True)
    settings_manager.save_session("tok-123", "ada")

    assert settings_manager.get_session() == {"token": "tok-123", "username": "ada"}

    settings_manager.clear_session()

    assert settings_manager.get_session() == {"token": None, "username": None}
    assert settings_manager.load_user_settings() == {"verbose": True}


def test_settings_session_store_restores_saved_session(settings_manager):
    store = SettingsSessionStore(settings_manager)
    assert not store.is_authenticated

    store.set("tok-123", "ada")
    restored = SettingsSessionStore(settings_manager)
    assert restored.token == "tok-123"
    assert restored.username == "ada"

    restored.clear()
    assert SettingsSessionStore(settings_manager).token is None
