"""Structured error handling — exception taxonomy, classification, and tool error model."""

from __future__ import annotations

from enum import Enum

import httpx
from pydantic import BaseModel

GAME_OVER_MESSAGE = "Game Over. Check cartridge."


class RetroVisionError(Exception):
    """Base class for every error raised by the generation console."""

    fallback_message = GAME_OVER_MESSAGE

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.fallback_message)


class QuotaExceeded(RetroVisionError):
    """Daily generation cap reached; raised before any network call."""

    fallback_message = "Daily limit reached."


class PipelineError(RetroVisionError):
    """A generation stage failed. Surfaces as the ``Failed`` console phase."""


class DescriptionGenerationFailed(PipelineError):
    """Stage 1 (text model) errored."""

    fallback_message = "Failed to interpret the text."


class ImageGenerationFailed(PipelineError):
    """Stage 2 (image model) errored or returned no inline image."""

    fallback_message = "Failed to generate the pixel art."


class ExportFailed(RetroVisionError):
    """Scene capture failed. Never fatal to the console."""

    fallback_message = "Failed to save the scene."


class SessionNotFound(RetroVisionError):
    """Unknown or evicted console session id."""

    fallback_message = "Console session not found."


class ErrorCategory(str, Enum):
    """Categories of errors for diagnostics."""

    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    DESCRIPTION_FAILED = "DESCRIPTION_FAILED"
    IMAGE_FAILED = "IMAGE_FAILED"
    EXPORT_FAILED = "EXPORT_FAILED"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    API_PERMISSION_DENIED = "API_PERMISSION_DENIED"
    API_RATE_LIMITED = "API_RATE_LIMITED"
    API_INVALID_ARGUMENT = "API_INVALID_ARGUMENT"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


class ToolError(BaseModel):
    """Structured error returned from any tool or HTTP route."""

    error: str
    category: str
    hint: str
    retryable: bool = False


def categorize_error(error: Exception) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    if isinstance(error, QuotaExceeded):
        return (
            ErrorCategory.QUOTA_EXCEEDED,
            "Daily credits used up — try again tomorrow or raise RETRO_DAILY_MAX",
        )
    if isinstance(error, SessionNotFound):
        return (
            ErrorCategory.SESSION_NOT_FOUND,
            "Session expired or never existed — call console_create first",
        )
    if isinstance(error, ExportFailed):
        return (
            ErrorCategory.EXPORT_FAILED,
            "Scene capture failed — the console state is unaffected, try saving again",
        )
    if isinstance(error, (httpx.TimeoutException, httpx.NetworkError, TimeoutError)):
        return (
            ErrorCategory.NETWORK_ERROR,
            "Request timed out or connection dropped — check connectivity and retry",
        )

    s = str(error).lower()

    if "api key not configured" in s or "no gemini api key" in s:
        return (
            ErrorCategory.NOT_CONFIGURED,
            "Set GEMINI_API_KEY in the environment or ~/.config/retro-vision/.env",
        )
    if "403" in s or "permission" in s:
        return (
            ErrorCategory.API_PERMISSION_DENIED,
            "API key lacks access to the configured Gemini model",
        )
    if "429" in s or "resource_exhausted" in s or "quota" in s:
        return (
            ErrorCategory.API_RATE_LIMITED,
            "Gemini rate limit hit — wait a minute before the next generation",
        )
    if "400" in s or "invalid argument" in s:
        return (
            ErrorCategory.API_INVALID_ARGUMENT,
            "Gemini rejected the request — check model name and image size",
        )
    if "timeout" in s or "timed out" in s:
        return (
            ErrorCategory.NETWORK_ERROR,
            "Request timed out — try again or check connectivity",
        )
    if isinstance(error, DescriptionGenerationFailed):
        return (
            ErrorCategory.DESCRIPTION_FAILED,
            "The text model could not describe the scene — reset and try another line",
        )
    if isinstance(error, ImageGenerationFailed):
        return (
            ErrorCategory.IMAGE_FAILED,
            "The image model returned no picture — reset and try again",
        )
    if isinstance(error, ValueError):
        return (ErrorCategory.INVALID_INPUT, str(error))

    return (ErrorCategory.UNKNOWN, str(error))


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    retryable = cat in {
        ErrorCategory.API_RATE_LIMITED,
        ErrorCategory.NETWORK_ERROR,
        ErrorCategory.EXPORT_FAILED,
    }
    return ToolError(
        error=str(error),
        category=cat.value,
        hint=hint,
        retryable=retryable,
    ).model_dump(mode="json")
