# functions/utils/llm_client.py
"""
Gemini client used by Stage B.

One ``GeminiClient`` is built at process start from configuration
(``build_llm_client_from_config``) and handed to the engine / API layer
explicitly. Construction never fails on a missing key; the first
``generate`` call raises ``AIUnavailableError`` instead.

The client sends exactly one request per call: no retries, no streaming,
no client-side timeout.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional, cast

import google.generativeai as genai
import structlog

from functions.utils.common import ROOT, load_generation_params, load_yaml_dict
from functions.utils.errors import AIUnavailableError

logger = structlog.get_logger().bind(module="llm_client")

DEFAULT_MODEL_NAME = "gemini-2.0-flash"
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")
CREDENTIALS_PATH = ROOT / "parameters" / "credentials.yaml"


# ---------------------------------------------------------------------------
# String subclass that can carry usage metadata
# ---------------------------------------------------------------------------
class LLMText(str):
    """
    String that also exposes:
      - .usage: {prompt_tokens, completion_tokens, total_tokens}
      - .raw: raw SDK response object
    """

    usage: Dict[str, Any]
    raw: Any

    def __new__(
        cls,
        text: str,
        usage: Optional[Dict[str, Any]] = None,
        raw: Any = None,
    ) -> "LLMText":
        obj = cast(LLMText, str.__new__(cls, text or ""))
        obj.usage = usage or {}
        obj.raw = raw
        return obj


def _safe_get_text(resp: Any) -> str | None:
    # resp.text raises when the candidate was blocked / has no parts
    try:
        txt = getattr(resp, "text", None)
    except Exception:
        logger.warning(
            "gemini_text_accessor_failed",
            finish_reason=str(getattr(resp, "finish_reason", None)),
        )
        return None

    if not txt or not str(txt).strip():
        logger.warning("gemini_blank_text_returned")
        return None

    return str(txt)


def _usage_from_response(resp: Any) -> Dict[str, Any]:
    um = getattr(resp, "usage_metadata", None)
    return {
        "prompt_tokens": getattr(um, "prompt_token_count", None) if um else None,
        "completion_tokens": getattr(um, "candidates_token_count", None) if um else None,
        "total_tokens": getattr(um, "total_token_count", None) if um else None,
    }


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------
def resolve_api_key(credentials_path: Path = CREDENTIALS_PATH) -> Optional[str]:
    """
    Look up the Gemini API key.

    Order:
      1) env GEMINI_API_KEY
      2) env GOOGLE_API_KEY
      3) parameters/credentials.yaml (same key names, either case)
    """
    for var in API_KEY_ENV_VARS:
        value = os.environ.get(var)
        if value:
            return value

    creds = load_yaml_dict(credentials_path)
    for var in API_KEY_ENV_VARS:
        value = creds.get(var) or creds.get(var.lower())
        if value:
            return str(value)

    logger.warning("gemini_api_key_missing")
    return None


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class GeminiClient:
    """Thin wrapper over google-generativeai's GenerativeModel."""

    def __init__(
        self,
        *,
        api_key: Optional[str],
        model_name: str = DEFAULT_MODEL_NAME,
        temperature: float = 0.4,
        top_p: float = 0.9,
        max_output_tokens: int = 4096,
    ) -> None:
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self.top_p = top_p
        self.max_output_tokens = max_output_tokens
        self._model: Any = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_model(self) -> Any:
        if self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
            logger.info("gemini_model_initialized", model=self.model_name)
        return self._model

    def generate(self, prompt: str) -> LLMText:
        """Send ``prompt`` and return the raw reply text."""
        if not self.api_key:
            logger.error("llm_call_skipped_no_api_key", model=self.model_name)
            raise AIUnavailableError("GEMINI_API_KEY environment variable is not set")

        model = self._get_model()
        gen_cfg = genai.GenerationConfig(
            temperature=self.temperature,
            top_p=self.top_p,
            max_output_tokens=self.max_output_tokens,
        )

        logger.info(
            "llm_call_start",
            model=self.model_name,
            prompt_chars=len(prompt),
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )

        try:
            resp = model.generate_content(prompt, generation_config=gen_cfg)
        except Exception as exc:
            logger.error(
                "llm_call_failed",
                model=self.model_name,
                error_type=type(exc).__name__,
                error=str(exc)[:200],
            )
            raise AIUnavailableError(f"Gemini API call failed: {exc}") from exc

        text = _safe_get_text(resp)
        if text is None:
            raise AIUnavailableError("Gemini returned an empty response")

        usage = _usage_from_response(resp)
        logger.info(
            "llm_call_success",
            model=self.model_name,
            reply_chars=len(text),
            prompt_tokens=usage["prompt_tokens"],
            output_tokens=usage["completion_tokens"],
            total_tokens=usage["total_tokens"],
        )
        return LLMText(text, usage=usage, raw=resp)


def build_llm_client_from_config(params: Dict[str, Any] | None = None) -> GeminiClient:
    """Create the process-wide client from parameters.yaml + environment."""
    gen_cfg = load_generation_params(params)
    client = GeminiClient(
        api_key=resolve_api_key(),
        model_name=str(gen_cfg.get("model_name", DEFAULT_MODEL_NAME)),
        temperature=float(gen_cfg.get("temperature", 0.4)),
        top_p=float(gen_cfg.get("top_p", 0.9)),
        max_output_tokens=int(gen_cfg.get("max_tokens", 4096)),
    )
    logger.info(
        "llm_client_built",
        model=client.model_name,
        api_key_present=client.is_configured,
    )
    return client


__all__ = [
    "LLMText",
    "GeminiClient",
    "resolve_api_key",
    "build_llm_client_from_config",
]
