"""Server configuration via environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

VALID_IMAGE_SIZES = {"1K", "2K", "4K"}

DEFAULT_DESCRIPTION_MODEL = "gemini-2.5-pro"
DEFAULT_IMAGE_MODEL = "gemini-3-pro-image-preview"


def _is_env_placeholder(value: str) -> bool:
    """Return True when *value* looks like an unresolved shell placeholder."""
    if value.startswith("${") and value.endswith("}"):
        inner = value[2:-1].strip()
        if ":-" in inner:
            inner = inner.split(":-", 1)[0].strip()
        return bool(inner) and all(ch.isalnum() or ch == "_" for ch in inner)
    if value.startswith("$"):
        inner = value[1:].strip()
        return bool(inner) and all(ch.isalnum() or ch == "_" for ch in inner)
    return False


def _env_path(name: str, default: Path) -> str:
    """Read a path-valued env var, treating blanks and placeholders as unset."""
    raw = os.getenv(name, "").strip()
    if not raw or _is_env_placeholder(raw):
        return str(default)
    return raw


def _resolve_tracing_enabled(flag_value: str, tracking_uri: str) -> bool:
    """Derive tracing_enabled from env vars.

    - ``RETRO_TRACING_ENABLED=false`` → always disabled (explicit opt-out).
    - Otherwise enabled when ``MLFLOW_TRACKING_URI`` is non-empty.
    """
    if flag_value.lower() == "false":
        return False
    return bool(tracking_uri)


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment."""

    gemini_api_key: str = Field(default="")
    description_model: str = Field(default=DEFAULT_DESCRIPTION_MODEL)
    image_model: str = Field(default=DEFAULT_IMAGE_MODEL)
    image_size: str = Field(default="1K")
    daily_max: int = Field(default=10)
    state_path: str = Field(default="")
    reveal_delay_ms: int = Field(default=2000)
    reveal_rate_ms: int = Field(default=80)
    export_dir: str = Field(default="")
    export_scale: int = Field(default=2)
    font_path: str = Field(default="")
    max_sessions: int = Field(default=20)
    session_timeout_hours: int = Field(default=2)
    tracing_enabled: bool = Field(default=False)
    mlflow_tracking_uri: str = Field(default="")
    mlflow_experiment_name: str = Field(default="retro-vision")

    @field_validator("image_size")
    @classmethod
    def validate_image_size(cls, value: str) -> str:
        size = value.strip().upper()
        if size not in VALID_IMAGE_SIZES:
            allowed = ", ".join(sorted(VALID_IMAGE_SIZES))
            raise ValueError(f"Invalid image size '{value}'. Allowed: {allowed}")
        return size

    @field_validator("daily_max", "export_scale", "max_sessions", "session_timeout_hours", "reveal_rate_ms")
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Configuration values must be >= 1")
        return value

    @field_validator("reveal_delay_ms")
    @classmethod
    def validate_reveal_delay(cls, value: int) -> int:
        if value < 0:
            raise ValueError("reveal_delay_ms must be >= 0")
        return value

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        base = Path.home() / ".cache" / "retro-vision"
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            description_model=os.getenv("RETRO_DESCRIPTION_MODEL", DEFAULT_DESCRIPTION_MODEL),
            image_model=os.getenv("RETRO_IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
            image_size=os.getenv("RETRO_IMAGE_SIZE", "1K"),
            daily_max=int(os.getenv("RETRO_DAILY_MAX", "10")),
            state_path=_env_path("RETRO_STATE_PATH", base / "state.json"),
            reveal_delay_ms=int(os.getenv("RETRO_REVEAL_DELAY_MS", "2000")),
            reveal_rate_ms=int(os.getenv("RETRO_REVEAL_RATE_MS", "80")),
            export_dir=_env_path("RETRO_EXPORT_DIR", base / "exports"),
            export_scale=int(os.getenv("RETRO_EXPORT_SCALE", "2")),
            font_path=os.getenv("RETRO_FONT_PATH", ""),
            max_sessions=int(os.getenv("RETRO_MAX_SESSIONS", "20")),
            session_timeout_hours=int(os.getenv("RETRO_SESSION_TIMEOUT_HOURS", "2")),
            tracing_enabled=_resolve_tracing_enabled(
                os.getenv("RETRO_TRACING_ENABLED", ""),
                os.getenv("MLFLOW_TRACKING_URI", ""),
            ),
            mlflow_tracking_uri=os.getenv("MLFLOW_TRACKING_URI", ""),
            mlflow_experiment_name=os.getenv("MLFLOW_EXPERIMENT_NAME", "retro-vision"),
        )


_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access.

    Loads ``~/.config/retro-vision/.env`` before reading env vars.
    Process environment always takes precedence over the config file.
    """
    global _config
    if _config is None:
        import logging

        from .dotenv import load_dotenv

        injected = load_dotenv()
        if injected:
            logger = logging.getLogger(__name__)
            logger.info(
                "Loaded %d var(s) from config: %s",
                len(injected),
                ", ".join(injected.keys()),
            )
        _config = ServerConfig.from_env()
    return _config


def update_config(**overrides: object) -> ServerConfig:
    """Patch the live config (used by ``infra_configure`` tool)."""
    global _config
    cfg = get_config()
    data = cfg.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    _config = ServerConfig(**data)
    return _config


def reset_config() -> None:
    """Reset the config singleton (for testing)."""
    global _config
    _config = None
