# functions/stage_d_packaging.py

"""
Stage D – Response Packaging

Final layer of the forge pipeline.

Responsibilities:
- Wrap a normalized RoadmapDocument in the success envelope.
- Build error envelopes from error codes or raised exceptions, mapping each
  to its HTTP status.
- Generate a request_id when upstream did not provide one.

Everything here is HTTP-agnostic: callers get ``(ForgeResponse, status)``
and decide how to send it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Tuple

import structlog

from functions.utils.errors import FORGE_FAILED, ForgeError
from schemas.output_schema import ErrorDetail, ForgeResponse, RoadmapDocument

logger = structlog.get_logger(__name__).bind(module="stage_d_packaging")

GENERIC_FAILURE_MESSAGE = "Failed to forge career roadmap"


def generate_request_id() -> str:
    """Generate a simple request ID if upstream did not provide one."""
    now = datetime.now(timezone.utc)
    return f"REQ_{int(now.timestamp() * 1000)}"


def build_success_response(document: RoadmapDocument) -> Tuple[ForgeResponse, int]:
    """Success envelope: ``{success: true, data: <document>, error: null}``."""
    return ForgeResponse(success=True, data=document, error=None), 200


def build_error_response(
    *,
    error_code: str,
    message: str,
    http_status: int = 400,
    request_id: Optional[str] = None,
) -> Tuple[ForgeResponse, int]:
    """
    Build a standardized error envelope.

    ``message`` goes to the caller verbatim, so it must already be safe
    (no model output, no stack traces).
    """
    response = ForgeResponse(
        success=False,
        data=None,
        error=ErrorDetail(message=message, code=error_code),
    )

    logger.warning(
        "forge_error_response",
        request_id=request_id,
        error_code=error_code,
        http_status=http_status,
    )
    return response, http_status


def error_response_from_exception(
    exc: BaseException,
    *,
    request_id: Optional[str] = None,
) -> Tuple[ForgeResponse, int]:
    """Map any exception onto the error taxonomy (FORGE_FAILED if unknown)."""
    if isinstance(exc, ForgeError):
        return build_error_response(
            error_code=exc.error_code,
            message=exc.public_message,
            http_status=exc.http_status,
            request_id=request_id,
        )

    logger.error(
        "forge_unexpected_error",
        request_id=request_id,
        error_type=type(exc).__name__,
    )
    return build_error_response(
        error_code=FORGE_FAILED,
        message=GENERIC_FAILURE_MESSAGE,
        http_status=500,
        request_id=request_id,
    )


__all__ = [
    "GENERIC_FAILURE_MESSAGE",
    "generate_request_id",
    "build_success_response",
    "build_error_response",
    "error_response_from_exception",
]
