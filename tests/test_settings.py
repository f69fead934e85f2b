"""
Tests for diffalyze.services.settings - JSON settings loading and saving.
"""

from __future__ import annotations

import json
import os
from unittest.mock import patch

import pytest

from diffalyze.core.diff.normalizer import CompareOptions
from diffalyze.services.settings import (
    ApplicationSettings,
    ComparisonSettings,
    SettingsManager,
)


class TestDefaults:
    """Tests for default values"""

    def test_limits(self):
        limits = ApplicationSettings().limits
        assert limits.max_file_size == 10 * 1024 * 1024
        assert limits.max_lines == 50000
        assert limits.worker_timeout == 30.0
        assert limits.regex_timeout == 0.25

    def test_history_limit(self):
        assert ApplicationSettings().merge.history_limit == 20

    def test_to_options(self):
        settings = ComparisonSettings(ignore_spaces_case=True, regex="")
        assert settings.to_options() == CompareOptions(ignore_spaces_case=True)
        assert ComparisonSettings(regex="#.*").to_options().regex == "#.*"


class TestSettingsManager:
    """Tests for SettingsManager"""

    def test_missing_file_gives_defaults(self, tmp_path):
        manager = SettingsManager(tmp_path / "missing.json")
        assert manager.settings == ApplicationSettings()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "settings.json"
        manager = SettingsManager(path)
        settings = manager.settings
        settings.comparison.ignore_blank = True
        settings.limits.max_lines = 10
        assert manager.save()

        loaded = SettingsManager(path).load()
        assert loaded.comparison.ignore_blank
        assert loaded.limits.max_lines == 10
        assert json.loads(path.read_text(encoding="utf-8"))["merge"] == {"history_limit": 20}

    def test_unknown_keys_are_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({
            "comparison": {"regex": "//.*", "colour": "blue"},
            "window": {"width": 800},
        }), encoding="utf-8")
        settings = SettingsManager(path).load()
        assert settings.comparison.regex == "//.*"
        assert settings.limits == ApplicationSettings().limits

    @pytest.mark.parametrize(
        "section, values",
        [
            ("merge", {"history_limit": 0}),
            ("merge", {"history_limit": "20"}),
            ("merge", {"history_limit": 2.5}),
            ("limits", {"worker_timeout": -1}),
            ("limits", {"max_lines": True}),
            ("comparison", {"ignore_blank": "yes", "regex": 5}),
        ],
    )
    def test_invalid_values_keep_defaults(self, tmp_path, section, values):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({section: values}), encoding="utf-8")
        assert SettingsManager(path).load() == ApplicationSettings()

    def test_valid_values_survive_next_to_invalid_ones(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({
            "limits": {"worker_timeout": 5, "max_lines": -3},
            "merge": {"history_limit": 5},
        }), encoding="utf-8")
        settings = SettingsManager(path).load()
        assert settings.limits.worker_timeout == 5.0
        assert isinstance(settings.limits.worker_timeout, float)
        assert settings.limits.max_lines == 50000
        assert settings.merge.history_limit == 5

    def test_invalid_json_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        assert SettingsManager(path).load() == ApplicationSettings()

    def test_non_object_json_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        assert SettingsManager(path).load() == ApplicationSettings()

    def test_observers(self, tmp_path):
        manager = SettingsManager(tmp_path / "settings.json")
        seen = []
        manager.add_observer(seen.append)
        manager.reset()
        assert seen == [ApplicationSettings()]

        manager.remove_observer(seen.append)
        manager.save()
        assert len(seen) == 1

    def test_save_without_settings(self, tmp_path):
        assert not SettingsManager(tmp_path / "settings.json").save()

    def test_default_path_uses_xdg_config_home(self, tmp_path):
        with patch.object(os, "name", "posix"):
            with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
                path = SettingsManager._get_default_path()
        assert path == tmp_path / "diffalyze" / "settings.json"
