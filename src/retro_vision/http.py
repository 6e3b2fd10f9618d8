"""Plain HTTP endpoints for the two pipeline stages.

``POST /generate-description`` and ``POST /generate-image`` expose each
stage on its own for web front-ends. Errors come back as ``{"error": ...}``:
400 for a bad body, theme or aspect ratio, 500 when the API key is missing
(checked before the body fields are read) or a collaborator fails.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .config import get_config
from .errors import PipelineError
from .pipeline import SceneGenerationPipeline
from .types import ASPECT_RATIOS

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "API key not configured"

PipelineProvider = Callable[[], SceneGenerationPipeline]


class _BadRequest(Exception):
    pass


async def _json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError as exc:
        raise _BadRequest("Request body must be JSON.") from exc
    if not isinstance(body, dict):
        raise _BadRequest("Request body must be a JSON object.")
    return body


def _required_str(body: dict, key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        raise _BadRequest(f"'{key}' is required.")
    return value


def _error(message: str, status: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status)


def build_routes(get_pipeline: PipelineProvider) -> list[Route]:
    """Starlette routes bound to whatever pipeline *get_pipeline* returns."""

    async def generate_description(request: Request) -> JSONResponse:
        try:
            body = await _json_body(request)
        except _BadRequest as exc:
            return _error(str(exc), 400)
        if not get_config().gemini_api_key:
            return _error(NOT_CONFIGURED, 500)

        try:
            user_text = _required_str(body, "userText")
            pipeline = get_pipeline()
            theme = pipeline.styles.resolve(_required_str(body, "style"))
        except (_BadRequest, ValueError) as exc:
            return _error(str(exc), 400)

        try:
            description = await pipeline.describe_scene(user_text, theme.id.value)
        except PipelineError as exc:
            logger.error("Error generating scene description: %s", exc)
            return _error(str(exc), 500)
        return JSONResponse({"description": description})

    async def generate_image(request: Request) -> JSONResponse:
        try:
            body = await _json_body(request)
        except _BadRequest as exc:
            return _error(str(exc), 400)
        if not get_config().gemini_api_key:
            return _error(NOT_CONFIGURED, 500)

        try:
            description = _required_str(body, "sceneDescription")
            aspect_ratio = body.get("aspectRatio", "16:9")
            if aspect_ratio not in ASPECT_RATIOS:
                raise _BadRequest(f"Unsupported aspect ratio '{aspect_ratio}'. Allowed: {', '.join(ASPECT_RATIOS)}")
            pipeline = get_pipeline()
            theme = pipeline.styles.resolve(_required_str(body, "style"))
        except (_BadRequest, ValueError) as exc:
            return _error(str(exc), 400)

        try:
            image_url = await pipeline.render_image(description, theme.id.value, aspect_ratio)
        except PipelineError as exc:
            logger.error("Error generating image: %s", exc)
            return _error(str(exc), 500)
        return JSONResponse({"imageUrl": image_url})

    return [
        Route("/generate-description", generate_description, methods=["POST"]),
        Route("/generate-image", generate_image, methods=["POST"]),
    ]


def register_routes(server, get_pipeline: PipelineProvider) -> None:
    """Attach the routes to a FastMCP server's HTTP app."""
    for route in build_routes(get_pipeline):
        server.custom_route(route.path, methods=["POST"])(route.endpoint)
