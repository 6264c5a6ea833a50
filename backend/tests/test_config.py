"""Tests for settings parsing and validation."""

import pytest
from pydantic import ValidationError

from pkgcost.config import Settings, settings


def test_settings_forced_into_testing():
    assert settings.is_testing
    assert settings.environment == "testing"


def test_browser_targets_list():
    cfg = Settings(browser_targets="last 2 Chrome versions, Safari >= 12,,")
    assert cfg.browser_targets_list == ["last 2 Chrome versions", "Safari >= 12"]


def test_default_browser_targets():
    assert Settings().browser_targets_list == [
        "last 5 Chrome versions",
        "last 5 Firefox versions",
        "Safari >= 8",
        "Explorer >= 10",
        "edge >= 12",
    ]


def test_minify_workers_default_and_override():
    assert Settings().minify_worker_count >= 1
    assert Settings(minify_workers=2).minify_worker_count == 2


def test_env_vars_are_read(monkeypatch):
    monkeypatch.setenv("INSTALL_TIMEOUT_SECONDS", "90")
    monkeypatch.setenv("NPM_COMMAND", "/opt/npm")
    cfg = Settings()
    assert cfg.install_timeout_seconds == 90
    assert cfg.npm_command == "/opt/npm"
    assert cfg.build_timeout_seconds is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"minify_workers": 0},
        {"install_timeout_seconds": 0},
        {"build_timeout_seconds": -1},
        {"gzip_level": 10},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValidationError):
        Settings(**kwargs)
