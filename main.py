# main.py
"""
Main access point for roadmap forging (Stages A–D).

Pipeline:
    Stage A: Guardrails (validation, sanitization, injection scan)
    Stage B: Prompt building + single LLM call (RoadmapGenerationEngine)
    Stage C: Normalization of the raw reply into a RoadmapDocument
    Stage D: Success / error envelope (stage_d_packaging)

`run_forge` raises ForgeError subclasses; `forge` turns any outcome into an
envelope + status so both the FastAPI route and the CLI stay thin.
"""

import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, Tuple

import structlog

from functions.stage_a_guardrails import GuardrailsProcessor
from functions.stage_b_generation import LLMClientLike, RoadmapGenerationEngine
from functions.stage_c_normalization import normalize_roadmap_response
from functions.stage_d_packaging import (
    build_success_response,
    error_response_from_exception,
)
from functions.utils.common import (
    load_all_parameters,
    load_normalization_params,
    load_security_params,
    load_validation_params,
    model_dump_compat,
)
from functions.utils.errors import InvalidInputError
from functions.utils.llm_client import build_llm_client_from_config
from schemas.output_schema import ForgeResponse, RoadmapDocument

logger = structlog.get_logger().bind(module="main")

ROOT = Path(__file__).resolve().parent

# ---------------------------------------------------------------------------
# Core pipeline: Stage A → B → C
# ---------------------------------------------------------------------------


def run_forge(
    narrative: Any,
    *,
    llm_client: LLMClientLike,
    params: Dict[str, Any] | None = None,
) -> RoadmapDocument:
    """
    Run the forge pipeline for a single narrative.

    Args
    ----
    narrative:
        Raw value from the request body; Stage A decides whether it is usable.
    llm_client:
        Client built once at startup (see build_llm_client_from_config).
    params:
        Parsed parameters.yaml. Defaults to the cached project file.

    Raises
    ------
    InvalidInputError, AIUnavailableError, RoadmapNormalizationError
    """
    if params is None:
        params = load_all_parameters()

    logger.info("pipeline_start")
    started = time.perf_counter()

    # ----------------------------- Stage A ------------------------------
    guardrails = GuardrailsProcessor(
        validation_config=load_validation_params(params),
        security_params=load_security_params(params),
    )
    guard = guardrails.validate_and_sanitize(narrative)
    if not guard.is_valid:
        raise InvalidInputError(guard.validation.error or "Invalid narrative")
    logger.info("stage_a_completed", warnings=guard.warnings or None)

    # ----------------------------- Stage B ------------------------------
    engine = RoadmapGenerationEngine(llm_client=llm_client)
    raw_reply = engine.generate_raw(guard.sanitized_narrative or "")
    logger.info("stage_b_completed")

    # ----------------------------- Stage C ------------------------------
    strict = bool(load_normalization_params(params).get("strict", False))
    document = normalize_roadmap_response(raw_reply, strict=strict)
    logger.info("stage_c_completed", strict=strict)

    logger.info(
        "pipeline_completed",
        elapsed_ms=int((time.perf_counter() - started) * 1000),
        phases=len(document.roadmap.phases),
    )
    return document


def forge(
    narrative: Any,
    *,
    llm_client: LLMClientLike,
    params: Dict[str, Any] | None = None,
    request_id: str | None = None,
) -> Tuple[ForgeResponse, int]:
    """Run the pipeline and package the outcome (Stage D)."""
    try:
        document = run_forge(narrative, llm_client=llm_client, params=params)
    except Exception as exc:
        return error_response_from_exception(exc, request_id=request_id)
    return build_success_response(document)


# ---------------------------------------------------------------------------
# CLI wrapper (for debugging without FastAPI)
# ---------------------------------------------------------------------------


def _cli() -> int:
    """
    CLI usage:

        python main.py path/to/narrative.txt

    Prints the forge response envelope as JSON.
    """
    if len(sys.argv) < 2:
        print("Usage: python main.py path/to/narrative.txt", file=sys.stderr)
        return 1

    in_path = Path(sys.argv[1])
    if not in_path.is_file():
        print(f"[ERROR] Input file not found: {in_path}", file=sys.stderr)
        return 1

    narrative = in_path.read_text(encoding="utf-8")
    response, status = forge(narrative, llm_client=build_llm_client_from_config())

    print(json.dumps(model_dump_compat(response), ensure_ascii=False, indent=2))
    print(f"[info] status={status}", file=sys.stderr)
    return 0 if response.success else 1


if __name__ == "__main__":
    raise SystemExit(_cli())
