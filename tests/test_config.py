"""Tests for the central configuration loader (trashcan/config.py)."""

import pytest
import yaml

from trashcan.config import (
    CacheSettings,
    LoggingSettings,
    Settings,
    _apply_dict,
    _apply_env_overrides,
    _load_yaml,
    get_settings,
    reset_settings,
)


# ── YAML loading ────────────────────────────────────────


class TestLoadYaml:
    def test_loads_valid_yaml(self, tmp_path):
        f = tmp_path / "cfg.yaml"
        f.write_text("cache:\n  sweep_interval_seconds: 2.5\n")
        data = _load_yaml(f)
        assert data["cache"]["sweep_interval_seconds"] == 2.5

    def test_returns_empty_dict_for_missing_file(self, tmp_path):
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_returns_empty_dict_for_non_dict_yaml(self, tmp_path):
        f = tmp_path / "cfg.yaml"
        f.write_text("- item1\n- item2\n")
        assert _load_yaml(f) == {}


# ── Settings defaults ───────────────────────────────────


class TestSettingsDefaults:
    def test_default_settings_have_expected_values(self):
        s = Settings()
        assert s.cache.sweep_interval_seconds == 10.0
        assert s.cache.initial_delay_seconds is None
        assert s.cache.autostart is True
        assert s.cache.evict_cross_tier is True
        assert s.logging.level == "INFO"
        assert s.logging.format == "json"


# ── get_settings() from YAML ────────────────────────────


class TestGetSettings:
    def _write_config(self, tmp_path, data):
        f = tmp_path / "config.yaml"
        f.write_text(yaml.dump(data))
        return f

    def test_loads_yaml_values(self, tmp_path):
        cfg = self._write_config(tmp_path, {
            "cache": {"sweep_interval_seconds": 1.5, "autostart": False},
            "logging": {"level": "DEBUG"},
        })
        s = get_settings(yaml_path=cfg, env_path=tmp_path / ".env")
        assert s.cache.sweep_interval_seconds == 1.5
        assert s.cache.autostart is False
        assert s.logging.level == "DEBUG"
        assert s.cache.evict_cross_tier is True

    def test_unknown_keys_ignored(self, tmp_path):
        cfg = self._write_config(tmp_path, {"cache": {"max_entries": 5}})
        s = get_settings(yaml_path=cfg, env_path=tmp_path / ".env")
        assert not hasattr(s.cache, "max_entries")

    def test_singleton(self, tmp_path):
        cfg = self._write_config(tmp_path, {})
        first = get_settings(yaml_path=cfg, env_path=tmp_path / ".env")
        assert get_settings() is first

    def test_force_reload(self, tmp_path):
        cfg = self._write_config(tmp_path, {})
        first = get_settings(yaml_path=cfg, env_path=tmp_path / ".env")
        second = get_settings(
            yaml_path=cfg, env_path=tmp_path / ".env", _force_reload=True
        )
        assert second is not first

    def test_reset(self, tmp_path):
        cfg = self._write_config(tmp_path, {})
        first = get_settings(yaml_path=cfg, env_path=tmp_path / ".env")
        reset_settings()
        assert get_settings(yaml_path=cfg, env_path=tmp_path / ".env") is not first

    def test_dotenv_file_applied(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TRASHCAN_CACHE_STOP_TIMEOUT_SECONDS", raising=False)
        env = tmp_path / ".env"
        env.write_text("TRASHCAN_CACHE_STOP_TIMEOUT_SECONDS=1.25\n")
        cfg = self._write_config(tmp_path, {})
        try:
            s = get_settings(yaml_path=cfg, env_path=env)
            assert s.cache.stop_timeout_seconds == 1.25
        finally:
            monkeypatch.delenv("TRASHCAN_CACHE_STOP_TIMEOUT_SECONDS", raising=False)


# ── Helpers ─────────────────────────────────────────────


class TestApplyDict:
    def test_sets_known_fields(self):
        target = CacheSettings()
        _apply_dict(target, {"autostart": False, "bogus": 1})
        assert target.autostart is False
        assert not hasattr(target, "bogus")


class TestEnvOverrides:
    def test_float_override(self, monkeypatch):
        monkeypatch.setenv("TRASHCAN_CACHE_SWEEP_INTERVAL_SECONDS", "0.5")
        s = Settings()
        _apply_env_overrides(s)
        assert s.cache.sweep_interval_seconds == 0.5

    def test_bool_override(self, monkeypatch):
        monkeypatch.setenv("TRASHCAN_CACHE_EVICT_CROSS_TIER", "no")
        s = Settings()
        _apply_env_overrides(s)
        assert s.cache.evict_cross_tier is False

    def test_optional_field_override(self, monkeypatch):
        monkeypatch.setenv("TRASHCAN_CACHE_INITIAL_DELAY_SECONDS", "3")
        s = Settings()
        _apply_env_overrides(s)
        assert s.cache.initial_delay_seconds == 3.0

    def test_string_override(self, monkeypatch):
        monkeypatch.setenv("TRASHCAN_LOGGING_FORMAT", "text")
        s = Settings()
        _apply_env_overrides(s)
        assert s.logging.format == "text"

    def test_invalid_override_ignored(self, monkeypatch):
        monkeypatch.setenv("TRASHCAN_CACHE_SWEEP_INTERVAL_SECONDS", "soon")
        s = Settings()
        _apply_env_overrides(s)
        assert s.cache.sweep_interval_seconds == 10.0

    def test_logging_settings_type(self):
        assert isinstance(Settings().logging, LoggingSettings)
