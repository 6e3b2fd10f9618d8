"""Optional MLflow tracing for scene generations.

One console generation shows up as a ``generate_scene`` span with the
``describe_scene`` and ``render_image`` stages nested under it; with
``mlflow.gemini.autolog()`` on, each model call lands inside its stage.
Traces are tagged with the concrete theme and aspect ratio so RANDOM picks
can be told apart afterwards.

``mlflow-tracing`` is an optional extra. Without it every helper here is a
no-op and the console behaves the same.

Env vars (all optional):
    MLFLOW_TRACKING_URI: Trace destination. Empty = tracing disabled.
    MLFLOW_EXPERIMENT_NAME: Experiment name (default ``retro-vision``).
    RETRO_TRACING_ENABLED: ``"false"`` turns tracing off even with a URI.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

try:
    import mlflow
    import mlflow.gemini

    _HAS_MLFLOW = True
except ImportError:
    _HAS_MLFLOW = False


def is_enabled() -> bool:
    """True when mlflow is importable and config has not switched tracing off."""
    if not _HAS_MLFLOW:
        return False
    from .config import get_config

    return get_config().tracing_enabled


def trace(
    func: Callable | None = None,
    *,
    name: str | None = None,
    span_type: str | None = None,
) -> Callable:
    """Decorate a tool or pipeline stage with an MLflow span.

    Decided at import time: with tracing off the function comes back
    unchanged, so stage code never pays for a disabled tracer.

    Usage::

        @trace(name="render_image", span_type="CHAIN")
        async def render_image(...): ...
    """
    if not is_enabled():
        return func if func is not None else (lambda f: f)
    return mlflow.trace(func, name=name, span_type=span_type)


def tag_scene(theme_id: str, aspect_ratio: str, requested_theme: str) -> None:
    """Attach the resolved style of the running generation to its trace."""
    if not is_enabled():
        return
    try:
        mlflow.update_current_trace(
            tags={
                "retro.theme": theme_id,
                "retro.theme_requested": requested_theme,
                "retro.aspect_ratio": aspect_ratio,
            }
        )
    except Exception:
        logger.debug("Could not tag trace for theme %s", theme_id, exc_info=True)


def setup() -> None:
    """Select the tracking server and experiment, then turn on Gemini autolog.

    A broken tracking server only costs the traces; the console still starts.
    """
    if not is_enabled():
        return

    from .config import get_config

    cfg = get_config()
    try:
        mlflow.set_tracking_uri(cfg.mlflow_tracking_uri)
        mlflow.set_experiment(cfg.mlflow_experiment_name)
        mlflow.gemini.autolog()
        logger.info(
            "Scene tracing on (uri=%s, experiment=%s)",
            cfg.mlflow_tracking_uri,
            cfg.mlflow_experiment_name,
        )
    except Exception:
        logger.warning("Scene tracing setup failed, generating without traces", exc_info=True)


def shutdown() -> None:
    """Flush traces still queued for async upload."""
    if not is_enabled():
        return

    try:
        mlflow.flush_trace_async_logging()
        logger.info("Scene traces flushed")
    except Exception:
        logger.warning("Scene trace flush failed", exc_info=True)
