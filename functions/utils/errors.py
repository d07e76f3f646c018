# functions/utils/errors.py
"""
Error taxonomy for the forge pipeline.

Every error raised on purpose by Stages A-C derives from ``ForgeError`` and
carries what Stage D needs to build an HTTP-agnostic error envelope:

    INVALID_INPUT  -> 400   (bad / missing / oversized narrative, bad body)
    AI_ERROR       -> 500   (remote call failure, unusable model reply)
    FORGE_FAILED   -> 500   (anything not covered above)

``public_message`` is what the caller sees. It must never contain the raw
model reply or exception text from the SDK.
"""

from __future__ import annotations

from typing import Sequence

INVALID_INPUT = "INVALID_INPUT"
AI_ERROR = "AI_ERROR"
FORGE_FAILED = "FORGE_FAILED"
METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"


class ForgeError(Exception):
    """Base class for expected pipeline failures."""

    error_code: str = FORGE_FAILED
    http_status: int = 500
    public_message: str = "Failed to forge career roadmap"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)


class InvalidInputError(ForgeError):
    """The request body or narrative did not pass Stage A."""

    error_code = INVALID_INPUT
    http_status = 400

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        # Validation reasons are written for the caller, so expose them as-is.
        self.public_message = reason


class AIResponseError(ForgeError):
    """Anything that went wrong talking to, or reading from, the model."""

    error_code = AI_ERROR
    http_status = 500
    public_message = "AI service returned an unusable response"


class AIUnavailableError(AIResponseError):
    """Missing credential, SDK failure, or an empty reply."""

    public_message = "AI service is unavailable"


class RoadmapNormalizationError(AIResponseError):
    """The reply could not be turned into a roadmap document."""


class NoJSONFoundError(RoadmapNormalizationError):
    public_message = "AI response did not contain a JSON object"


class ResponseParseError(RoadmapNormalizationError):
    public_message = "AI response contained malformed JSON"


class MissingFieldError(RoadmapNormalizationError):
    public_message = "AI response is missing required fields"

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required field(s): {', '.join(self.missing)}")


__all__ = [
    "INVALID_INPUT",
    "AI_ERROR",
    "FORGE_FAILED",
    "METHOD_NOT_ALLOWED",
    "ForgeError",
    "InvalidInputError",
    "AIResponseError",
    "AIUnavailableError",
    "RoadmapNormalizationError",
    "NoJSONFoundError",
    "ResponseParseError",
    "MissingFieldError",
]
