"""Tests for configuration loading and validation."""

import json
import logging
from pathlib import Path

import pytest

from spoon.core.config import (
    DEFAULT_TTL_MS,
    LaunchAlias,
    SpoonConfig,
    SpoonSettings,
    load_config,
    save_config,
)
from spoon.exceptions import ConfigError


class TestSpoonConfig:
    """Tests for SpoonConfig."""

    def test_default_config(self):
        """Test default configuration values."""
        config = SpoonConfig()
        assert config.default_launch == "claude"
        assert config.ttl_ms == DEFAULT_TTL_MS == 14 * 86_400_000
        assert config.purge_threshold == 10
        assert config.host == "github.com"
        assert config.shallow_clone is False
        assert set(config.launch) == {"claude", "opencode", "amp"}
        assert "~" not in str(config.base_dir)

    def test_camel_case_keys(self, tmp_path):
        """Config files use camelCase keys."""
        config = SpoonConfig.model_validate({
            "ttlMs": 1000,
            "baseDir": str(tmp_path),
            "defaultLaunch": "amp",
            "purgeThreshold": 3,
        })
        assert config.ttl_ms == 1000
        assert config.base_dir == tmp_path
        assert config.default_launch == "amp"
        assert config.purge_threshold == 3

    def test_ttl_accepts_duration_string(self):
        config = SpoonConfig.model_validate({"ttlMs": "7d"})
        assert config.ttl_ms == 7 * 86_400_000

    def test_negative_ttl_rejected(self):
        with pytest.raises(ValueError):
            SpoonConfig.model_validate({"ttlMs": -5})

    def test_legacy_provider_key(self):
        """Older files stored the default launcher as 'provider'."""
        config = SpoonConfig.model_validate({"provider": "opencode"})
        assert config.default_launch == "opencode"

    def test_base_dir_home_expansion(self):
        config = SpoonConfig.model_validate({"baseDir": "~/scratch"})
        assert config.base_dir == Path.home() / "scratch"


class TestLaunchAliases:
    """Launch aliases may be bare strings or objects."""

    def test_string_and_object_aliases_normalized(self):
        config = SpoonConfig.model_validate({
            "launch": {
                "claude": "claude --continue",
                "codex": {"command": "codex", "description": "OpenAI Codex"},
            }
        })
        assert config.launch["claude"] == LaunchAlias(command="claude --continue")
        assert config.launch["codex"].command == "codex"
        assert config.launch["codex"].description == "OpenAI Codex"

    def test_malformed_aliases_dropped(self, caplog):
        """Entries without a usable command are ignored with a warning."""
        with caplog.at_level(logging.WARNING):
            config = SpoonConfig.model_validate({
                "launch": {
                    "good": "amp",
                    "empty": "",
                    "number": 42,
                    "nocommand": {"description": "missing"},
                }
            })
        assert list(config.launch) == ["good"]
        assert "Ignoring malformed launch alias 'empty'" in caplog.text
        assert "'nocommand'" in caplog.text

    def test_resolve_launch_uses_default_alias(self):
        config = SpoonConfig.model_validate({"launch": {"claude": "claude"}, "defaultLaunch": "claude"})
        assert config.resolve_launch() == "claude"

    def test_resolve_launch_named_alias(self):
        config = SpoonConfig.model_validate({"launch": {"claude": "claude", "amp": "amp --fast"}})
        assert config.resolve_launch("amp") == "amp --fast"

    def test_resolve_launch_override_wins(self):
        config = SpoonConfig()
        assert config.resolve_launch("amp", override="vim .") == "vim ."

    def test_resolve_launch_unknown_alias(self):
        config = SpoonConfig()
        with pytest.raises(ConfigError, match="Unknown launch alias 'nope'"):
            config.resolve_launch("nope")


class TestLoadConfig:
    """Tests for load_config / save_config."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "config.json")
        assert config == SpoonConfig()

    def test_invalid_json_falls_back_with_warning(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with caplog.at_level(logging.WARNING):
            config = load_config(path)
        assert config == SpoonConfig()
        assert "Using default configuration" in caplog.text

    def test_non_object_falls_back(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2, 3]")
        assert load_config(path) == SpoonConfig()

    def test_invalid_values_fall_back(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"ttlMs": "forever"}))
        assert load_config(path) == SpoonConfig()

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "nested" / "config.json"
        config = SpoonConfig(ttl_ms=3_600_000, base_dir=tmp_path / "repos", default_launch="amp")
        save_config(config, path)

        data = json.loads(path.read_text())
        assert data["ttlMs"] == 3_600_000
        assert data["defaultLaunch"] == "amp"
        assert load_config(path) == config


class TestSpoonSettings:
    """Tests for environment-driven settings."""

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SPOON_HOME", str(tmp_path / "home"))
        monkeypatch.setenv("SPOON_LOG_LEVEL", "DEBUG")
        settings = SpoonSettings()
        assert settings.home == tmp_path / "home"
        assert settings.config_path == tmp_path / "home" / "config.json"
        assert settings.history_path == tmp_path / "home" / "history.jsonl"
        assert settings.log_level == "DEBUG"
