"""Tests for the optional MLflow tracing integration."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

import retro_vision.tracing as mod


def _make_config(**overrides):
    """Build a mock ServerConfig with tracing-enabled defaults."""
    defaults = {
        "tracing_enabled": True,
        "mlflow_tracking_uri": "http://127.0.0.1:5001",
        "mlflow_experiment_name": "retro-vision",
    }
    defaults.update(overrides)
    cfg = MagicMock()
    for k, v in defaults.items():
        setattr(cfg, k, v)
    return cfg


@pytest.fixture()
def fake_mlflow(monkeypatch):
    mlflow = MagicMock()
    monkeypatch.setattr(mod, "mlflow", mlflow, raising=False)
    monkeypatch.setattr(mod, "_HAS_MLFLOW", True)
    return mlflow


class TestIsEnabled:
    def test_true_when_installed_and_enabled(self, fake_mlflow):
        with patch("retro_vision.config.get_config", return_value=_make_config()):
            assert mod.is_enabled() is True

    def test_false_when_not_installed(self, monkeypatch):
        monkeypatch.setattr(mod, "_HAS_MLFLOW", False)
        assert mod.is_enabled() is False

    def test_false_when_config_disabled(self, fake_mlflow):
        with patch("retro_vision.config.get_config", return_value=_make_config(tracing_enabled=False)):
            assert mod.is_enabled() is False


class TestTrace:
    def test_identity_when_disabled(self, monkeypatch):
        monkeypatch.setattr(mod, "_HAS_MLFLOW", False)

        async def stage():
            return 1

        assert mod.trace(name="stage", span_type="CHAIN")(stage) is stage

    def test_wraps_when_enabled(self, fake_mlflow):
        def stage():
            return 1

        with patch("retro_vision.config.get_config", return_value=_make_config()):
            mod.trace(stage, name="stage", span_type="CHAIN")
        fake_mlflow.trace.assert_called_once_with(stage, name="stage", span_type="CHAIN")


class TestSetup:
    def test_calls_autolog(self, fake_mlflow):
        with patch("retro_vision.config.get_config", return_value=_make_config()):
            mod.setup()
        fake_mlflow.set_tracking_uri.assert_called_once_with("http://127.0.0.1:5001")
        fake_mlflow.set_experiment.assert_called_once_with("retro-vision")
        fake_mlflow.gemini.autolog.assert_called_once()

    def test_noop_when_disabled(self, fake_mlflow, monkeypatch):
        monkeypatch.setattr(mod, "_HAS_MLFLOW", False)
        mod.setup()
        fake_mlflow.set_tracking_uri.assert_not_called()

    def test_setup_swallows_exceptions(self, fake_mlflow):
        fake_mlflow.set_experiment.side_effect = Exception("connection refused")
        with patch("retro_vision.config.get_config", return_value=_make_config()):
            mod.setup()
        fake_mlflow.gemini.autolog.assert_not_called()


class TestShutdown:
    def test_flushes(self, fake_mlflow):
        with patch("retro_vision.config.get_config", return_value=_make_config()):
            mod.shutdown()
        fake_mlflow.flush_trace_async_logging.assert_called_once()

    def test_noop_when_disabled(self, fake_mlflow, monkeypatch):
        monkeypatch.setattr(mod, "_HAS_MLFLOW", False)
        mod.shutdown()
        fake_mlflow.flush_trace_async_logging.assert_not_called()


class TestTagScene:
    def test_tags_resolved_theme(self, fake_mlflow):
        with patch("retro_vision.config.get_config", return_value=_make_config()):
            mod.tag_scene("MEDIEVAL_FANTASY", "4:3", "RANDOM")
        fake_mlflow.update_current_trace.assert_called_once_with(
            tags={
                "retro.theme": "MEDIEVAL_FANTASY",
                "retro.theme_requested": "RANDOM",
                "retro.aspect_ratio": "4:3",
            }
        )

    def test_noop_when_disabled(self, fake_mlflow, monkeypatch):
        monkeypatch.setattr(mod, "_HAS_MLFLOW", False)
        mod.tag_scene("MEDIEVAL_FANTASY", "4:3", "RANDOM")
        fake_mlflow.update_current_trace.assert_not_called()

    def test_tagging_failure_is_ignored(self, fake_mlflow):
        fake_mlflow.update_current_trace.side_effect = RuntimeError("no active trace")
        with patch("retro_vision.config.get_config", return_value=_make_config()):
            mod.tag_scene("MEDIEVAL_FANTASY", "16:9", "MEDIEVAL_FANTASY")
