# functions/stage_b_generation.py

"""
Stage B: roadmap generation.

This module handles:
- Building the roadmap prompt from the sanitized narrative
- Calling the LLM exactly once
- Returning the raw reply text for Stage C to normalize

The LLM client is injected. Anything with a ``generate(prompt) -> str``
method works (``GeminiClient`` in production, fakes in tests); a plain
callable ``fn(prompt) -> str`` is accepted too.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Protocol, Union

import structlog

from functions.utils.errors import AIUnavailableError, ForgeError
from functions.utils.prompts_builder import build_roadmap_prompt

logger = structlog.get_logger(__name__)


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


LLMClientLike = Union[TextGenerator, Callable[[str], str]]


class RoadmapGenerationEngine:
    """Encapsulates Stage B logic: prompt building and the single LLM call."""

    def __init__(self, llm_client: LLMClientLike) -> None:
        self.llm_client = llm_client
        self.logger = logger.bind(stage="B_generation")
        self.last_usage: dict[str, Any] = {}

    def _call(self, prompt: str) -> str:
        generate = getattr(self.llm_client, "generate", None)
        if callable(generate):
            return generate(prompt)
        return self.llm_client(prompt)  # type: ignore[operator]

    def generate_raw(self, narrative: str) -> str:
        """Return the model's raw reply for ``narrative``."""
        prompt = build_roadmap_prompt(narrative)
        self.logger.info("stage_b_prompt_built", prompt_chars=len(prompt))

        started = time.perf_counter()
        try:
            raw = self._call(prompt)
        except ForgeError:
            raise
        except Exception as exc:
            self.logger.error("stage_b_llm_client_error", error_type=type(exc).__name__)
            raise AIUnavailableError(f"LLM client failed: {exc}") from exc

        elapsed_ms = int((time.perf_counter() - started) * 1000)

        if not isinstance(raw, str) or not raw.strip():
            self.logger.error("stage_b_empty_reply", elapsed_ms=elapsed_ms)
            raise AIUnavailableError("LLM returned an empty reply")

        self.last_usage = dict(getattr(raw, "usage", {}) or {})
        self.logger.info(
            "stage_b_reply_received",
            reply_chars=len(raw),
            elapsed_ms=elapsed_ms,
            total_tokens=self.last_usage.get("total_tokens"),
        )
        return str(raw)


__all__ = ["RoadmapGenerationEngine", "TextGenerator", "LLMClientLike"]
