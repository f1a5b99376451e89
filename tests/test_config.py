"""Tests for settings loading and the config path override."""

import os
from unittest.mock import patch

import pytest
import yaml

import artverse.config as config_mod
from artverse.config import (
    Settings,
    get_config_path,
    get_settings,
    interpolate_env_vars,
    set_config_path,
)


class TestSetConfigPath:
    """Test set_config_path / get_config_path override behaviour."""

    def setup_method(self):
        config_mod._config_path_override = None

    def teardown_method(self):
        config_mod._config_path_override = None

    def test_override_is_returned(self, tmp_path):
        custom = tmp_path / "custom.yaml"
        set_config_path(custom)
        assert get_config_path() == custom

    def test_env_selects_yaml_variant(self):
        with patch.dict(os.environ, {"ARTVERSE_ENV": "testing"}, clear=False):
            path = get_config_path()
        assert path.name == "app.testing.yaml"

    def test_production_fallback(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("ARTVERSE_ENV", None)
            path = get_config_path()
        assert path.name == "app.yaml"


class TestInterpolateEnvVars:
    def test_nested_values(self):
        with patch.dict(os.environ, {"UPLOAD_TOKEN": "abc"}, clear=False):
            result = interpolate_env_vars({"remote": {"api_token": "$UPLOAD_TOKEN"}, "list": ["$UPLOAD_TOKEN"]})
        assert result == {"remote": {"api_token": "abc"}, "list": ["abc"]}

    def test_missing_variable_raises(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("NOT_SET_ANYWHERE", None)
            with pytest.raises(ValueError, match="NOT_SET_ANYWHERE"):
                interpolate_env_vars("$NOT_SET_ANYWHERE")


class TestGetSettings:
    def setup_method(self):
        config_mod._config_path_override = None

    def teardown_method(self):
        config_mod._config_path_override = None

    def test_defaults_without_yaml(self, tmp_path):
        set_config_path(tmp_path / "missing.yaml")
        settings = get_settings()
        assert settings.storage.backend == "local"
        assert settings.storage.max_upload_size == 10 * 1024 * 1024
        assert settings.lifecycle.max_artworks_per_gallery == 6
        assert settings.lifecycle.max_price == 10000

    def test_yaml_sections_override_defaults(self, temp_app_yaml):
        path = temp_app_yaml(
            {
                "debug": True,
                "db": {"url": "sqlite+aiosqlite:///./other.db"},
                "storage": {"backend": "remote", "remote": {"base_url": "http://files.internal"}},
                "lifecycle": {"max_artworks_per_gallery": 3},
            }
        )
        set_config_path(path)
        settings = get_settings()

        assert settings.debug is True
        assert settings.db.url == "sqlite+aiosqlite:///./other.db"
        assert settings.storage.backend == "remote"
        assert settings.storage.remote.base_url == "http://files.internal"
        assert settings.lifecycle.max_artworks_per_gallery == 3
        assert settings.lifecycle.max_price == 10000

    def test_settings_are_cached(self, tmp_path):
        set_config_path(tmp_path / "missing.yaml")
        assert get_settings() is get_settings()

    def test_default_allowed_types(self):
        assert Settings().storage.allowed_types == ["image/jpeg", "image/png", "image/gif", "image/webp"]
