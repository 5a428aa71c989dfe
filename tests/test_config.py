"""
Configuration Tests
===================

Tests for YAML loading, defaults and environment overrides.
"""

import pytest
from pydantic import ValidationError

from raster_playback.config import PlaybackConfig, Settings, load_config


ENV_VARS = [
    "RASTER_PLAYBACK_CONFIG",
    "RASTER_PLAYBACK_SOURCE_ROOT",
    "RASTER_PLAYBACK_INTERVAL_MINUTES",
    "RASTER_PLAYBACK_PROBE_BACKEND",
    "RASTER_PLAYBACK_BATCH_SIZE",
    "RASTER_PLAYBACK_PROBE_TIMEOUT",
    "RASTER_PLAYBACK_SPEED_MS",
    "RASTER_PLAYBACK_FRAME_COUNT",
    "RASTER_PLAYBACK_MAX_FRAME_COUNT",
    "RASTER_PLAYBACK_PORT",
    "RASTER_PLAYBACK_LOG_LEVEL",
    "PORT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    """Tests for built-in defaults."""

    def test_defaults(self):
        settings = Settings()

        assert settings.addressing.interval_minutes == 10
        assert settings.probe.batch_size == 3
        assert settings.probe.probe_suffix == "/.zmetadata"
        assert settings.playback.speed_ms == 1500
        assert settings.session.default_frame_count == 72
        assert settings.session.default_lag_hours == 14.0

    def test_default_layers(self):
        layers = Settings().display.layers

        assert [layer.name for layer in layers] == ["difference", "swath"]
        assert layers[0].clim == (-1.0, 1.0)
        assert layers[0].selector == {"tms_denial_flag": [0, 1]}

    def test_speed_bounds_validated(self):
        with pytest.raises(ValidationError):
            PlaybackConfig(min_speed_ms=500, max_speed_ms=100)

    def test_max_frame_count_default(self):
        assert Settings().session.max_frame_count == 1008

    def test_default_count_within_max(self):
        with pytest.raises(ValidationError):
            Settings.model_validate({"session": {"default_frame_count": 50, "max_frame_count": 10}})

    def test_batch_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings.model_validate({"probe": {"batch_size": 0}})


class TestLoadConfig:
    """Tests for load_config()."""

    def test_yaml_file(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "probe:\n"
            "  backend: mock\n"
            "  mock_missing: ['a', 'b']\n"
            "playback:\n"
            "  speed_ms: 800\n"
        )

        settings = load_config(str(path))

        assert settings.probe.backend == "mock"
        assert settings.probe.mock_missing == ["a", "b"]
        assert settings.playback.speed_ms == 800

    def test_config_path_from_env(self, clean_env, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("session:\n  default_frame_count: 12\n")
        clean_env.setenv("RASTER_PLAYBACK_CONFIG", str(path))

        assert load_config().session.default_frame_count == 12

    def test_env_overrides_file(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("probe:\n  batch_size: 5\n")
        clean_env.setenv("RASTER_PLAYBACK_BATCH_SIZE", "2")
        clean_env.setenv("RASTER_PLAYBACK_SPEED_MS", "250")
        clean_env.setenv("RASTER_PLAYBACK_SOURCE_ROOT", "https://example.test/")
        clean_env.setenv("RASTER_PLAYBACK_MAX_FRAME_COUNT", "500")

        settings = load_config(str(path))

        assert settings.probe.batch_size == 2
        assert settings.playback.speed_ms == 250
        assert settings.addressing.root == "https://example.test/"
        assert settings.session.max_frame_count == 500

    def test_port_precedence(self, clean_env, tmp_path):
        clean_env.setenv("RASTER_PLAYBACK_PORT", "9000")
        clean_env.setenv("PORT", "8080")

        assert load_config(str(tmp_path / "missing.yaml")).server.port == 8080

    def test_missing_file_uses_defaults(self, clean_env, tmp_path):
        settings = load_config(str(tmp_path / "missing.yaml"))

        assert settings.probe.backend == "http"
