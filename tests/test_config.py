"""Tests for configuration parsing and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from retro_vision.config import ServerConfig, get_config, update_config


class TestFromEnv:
    def test_defaults(self, monkeypatch):
        for name in ("RETRO_DAILY_MAX", "RETRO_IMAGE_SIZE", "RETRO_REVEAL_DELAY_MS", "RETRO_REVEAL_RATE_MS"):
            monkeypatch.delenv(name, raising=False)
        cfg = ServerConfig.from_env()
        assert cfg.daily_max == 10
        assert cfg.image_size == "1K"
        assert cfg.reveal_delay_ms == 2000
        assert cfg.reveal_rate_ms == 80
        assert cfg.description_model == "gemini-2.5-pro"
        assert cfg.image_model == "gemini-3-pro-image-preview"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("RETRO_DAILY_MAX", "25")
        monkeypatch.setenv("RETRO_IMAGE_SIZE", "2k")
        monkeypatch.setenv("RETRO_IMAGE_MODEL", "custom-image")
        cfg = ServerConfig.from_env()
        assert cfg.daily_max == 25
        assert cfg.image_size == "2K"
        assert cfg.image_model == "custom-image"

    def test_placeholder_paths_fall_back_to_default(self, monkeypatch):
        monkeypatch.setenv("RETRO_STATE_PATH", "${RETRO_STATE_PATH}")
        cfg = ServerConfig.from_env()
        assert cfg.state_path.endswith("state.json")
        assert "${" not in cfg.state_path

    def test_tracing_follows_tracking_uri(self, monkeypatch):
        monkeypatch.delenv("RETRO_TRACING_ENABLED", raising=False)
        monkeypatch.setenv("MLFLOW_TRACKING_URI", "http://127.0.0.1:5001")
        assert ServerConfig.from_env().tracing_enabled is True

    def test_tracing_explicit_opt_out(self, monkeypatch):
        monkeypatch.setenv("MLFLOW_TRACKING_URI", "http://127.0.0.1:5001")
        monkeypatch.setenv("RETRO_TRACING_ENABLED", "false")
        assert ServerConfig.from_env().tracing_enabled is False


class TestValidation:
    def test_rejects_unknown_image_size(self):
        with pytest.raises(ValidationError):
            ServerConfig(image_size="8K")

    @pytest.mark.parametrize("field", ["daily_max", "export_scale", "max_sessions", "reveal_rate_ms"])
    def test_rejects_non_positive(self, field):
        with pytest.raises(ValidationError):
            ServerConfig(**{field: 0})

    def test_rejects_negative_delay(self):
        with pytest.raises(ValidationError):
            ServerConfig(reveal_delay_ms=-1)

    def test_zero_delay_allowed(self):
        assert ServerConfig(reveal_delay_ms=0).reveal_delay_ms == 0


class TestSingleton:
    def test_update_config_patches_live_values(self):
        before = get_config()
        after = update_config(daily_max=4, image_model=None)
        assert after.daily_max == 4
        assert after.image_model == before.image_model
        assert get_config() is after
