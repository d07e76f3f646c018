# api.py
from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from structlog.contextvars import bind_contextvars, clear_contextvars

from functions.stage_b_generation import LLMClientLike
from functions.stage_d_packaging import build_error_response, generate_request_id
from functions.utils.common import load_all_parameters, model_dump_compat
from functions.utils.errors import INVALID_INPUT, METHOD_NOT_ALLOWED
from functions.utils.llm_client import build_llm_client_from_config
from main import forge
from schemas.input_schema import ForgeRequest
from schemas.output_schema import ForgeResponse

logger = structlog.get_logger().bind(module="api")

FORGE_PATH = "/api/forge"


def _envelope(response: ForgeResponse, status: int, request_id: str, **headers: str) -> JSONResponse:
    return JSONResponse(
        content=model_dump_compat(response),
        status_code=status,
        headers={"X-Request-ID": request_id, **headers},
    )


def create_app(
    llm_client: LLMClientLike | None = None,
    params: Dict[str, Any] | None = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    The LLM client is created here, once, and shared by every request.
    Tests pass their own fake client instead.
    """
    if params is None:
        params = load_all_parameters()
    if llm_client is None:
        llm_client = build_llm_client_from_config(params)

    app = FastAPI(
        title="PathForge Roadmap Service",
        version="1.0.0",
        description="Turns a free-text career narrative into a structured learning roadmap.",
    )
    app.state.llm_client = llm_client
    app.state.params = params

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.post(FORGE_PATH, response_model=ForgeResponse)
    async def forge_roadmap(
        request: Request,
        x_request_id: Optional[str] = Header(default=None, alias="X-Request-ID"),
    ) -> JSONResponse:
        """
        Main roadmap endpoint.

        - Body: {"narrative": "<free text>"}
        - 200: {success: true, data: <roadmap>, error: null}
        - 400: body is not JSON / not an object, or narrative invalid
        - 500: AI_ERROR (model call or reply unusable) / FORGE_FAILED
        """
        request_id = x_request_id or generate_request_id()
        clear_contextvars()
        bind_contextvars(request_id=request_id)
        logger.info("forge_request_received")

        try:
            # ---- Step 1: parse body ----
            try:
                body = await request.json()
            except ValueError:
                response, status = build_error_response(
                    error_code=INVALID_INPUT,
                    message="Request body must be valid JSON",
                    http_status=400,
                    request_id=request_id,
                )
                return _envelope(response, status, request_id)

            try:
                forge_request = ForgeRequest.model_validate(body)
            except ValidationError:
                response, status = build_error_response(
                    error_code=INVALID_INPUT,
                    message="Request body must be a JSON object",
                    http_status=400,
                    request_id=request_id,
                )
                return _envelope(response, status, request_id)

            # ---- Step 2: run pipeline (blocking SDK call off the event loop) ----
            response, status = await run_in_threadpool(
                forge,
                forge_request.narrative,
                llm_client=request.app.state.llm_client,
                params=request.app.state.params,
                request_id=request_id,
            )
            logger.info("forge_request_completed", status=status, success=response.success)
            return _envelope(response, status, request_id)
        finally:
            clear_contextvars()

    @app.api_route(
        FORGE_PATH,
        methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"],
        include_in_schema=False,
    )
    async def forge_method_not_allowed(request: Request) -> JSONResponse:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        response, status = build_error_response(
            error_code=METHOD_NOT_ALLOWED,
            message="Method not allowed. Use POST instead.",
            http_status=405,
            request_id=request_id,
        )
        return _envelope(response, status, request_id, Allow="POST")

    return app


app = create_app()
