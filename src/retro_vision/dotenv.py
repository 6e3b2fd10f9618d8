"""Load the shared ``~/.config/retro-vision/.env`` file into the environment.

Lets the console server and the HTTP routes pick up ``GEMINI_API_KEY`` and
the ``RETRO_*`` settings no matter which directory they were launched
from. Values already present in the process environment win.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_ENV_PATH = Path.home() / ".config" / "retro-vision" / ".env"

_QUOTES = ('"', "'")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    return value


def _needs_value(key: str, current: str | None) -> bool:
    """True when *current* is missing, blank, or an unexpanded ``${KEY}``."""
    if current is None:
        return True
    value = _unquote(current.strip()).strip()
    if not value:
        return True
    if value in (f"${key}", f"${{{key}}}"):
        return True
    return value.startswith(f"${{{key}:-") and value.endswith("}")


def parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines from *path*.

    Blank lines, ``#`` comments and an optional ``export`` prefix are
    accepted; surrounding quotes are stripped. No variable expansion.
    A missing file yields an empty dict.
    """
    if not path.is_file():
        return {}

    entries: dict[str, str] = {}
    for raw in path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        line = line.removeprefix("export ")
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        entries[key] = _unquote(value.strip())
    return entries


def load_dotenv(path: Path | None = None) -> dict[str, str]:
    """Copy entries from *path* into ``os.environ`` where the env lacks them.

    Args:
        path: ``.env`` file to read. Defaults to :data:`DEFAULT_ENV_PATH`.

    Returns:
        The variables that were actually injected.
    """
    injected: dict[str, str] = {}
    for key, value in parse_dotenv(path or DEFAULT_ENV_PATH).items():
        if _needs_value(key, os.environ.get(key)):
            os.environ[key] = value
            injected[key] = value
    return injected
