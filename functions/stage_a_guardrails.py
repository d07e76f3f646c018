"""Stage A: Narrative validation, sanitization, and guardrails.

This module is responsible for:
- Validating the raw ``narrative`` value (type + trimmed length bounds)
- Stripping control characters before the narrative reaches the prompt
- Scanning the narrative for prompt-injection patterns

``validate_narrative`` is the pure contract: any input value in, a
``NarrativeValidation`` out, no side effects. ``GuardrailsProcessor`` wraps
it with the configurable, logged checks used by the pipeline.

Injection findings are warnings by default. They only block when
``validation.block_on_injection`` is true in parameters.yaml.
"""

from __future__ import annotations

import math
from typing import Any

import structlog

from functions.utils.security_functions import detect_injection, sanitize_text
from schemas.internal_schema import GuardrailsResult, NarrativeValidation

logger = structlog.get_logger()

DEFAULT_MIN_CHARS = 30
DEFAULT_MAX_CHARS = 5000


def _is_missing(value: Any) -> bool:
    """None, empty string, False, zero and NaN all count as "no narrative"."""
    if value is None or value is False:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, (str, int, float)):
        return not value
    return False


def validate_narrative(
    narrative: Any,
    *,
    min_length: int = DEFAULT_MIN_CHARS,
    max_length: int = DEFAULT_MAX_CHARS,
) -> NarrativeValidation:
    """
    Check that ``narrative`` is a string whose trimmed length lies in
    ``[min_length, max_length]`` (inclusive).
    """
    if _is_missing(narrative):
        return NarrativeValidation.rejected("Narrative is required")

    if not isinstance(narrative, str):
        return NarrativeValidation.rejected("Narrative must be a string")

    trimmed = narrative.strip()

    if len(trimmed) < min_length:
        return NarrativeValidation.rejected(
            f"Narrative must be at least {min_length} characters long"
        )

    if len(trimmed) > max_length:
        return NarrativeValidation.rejected(
            f"Narrative must not exceed {max_length} characters"
        )

    return NarrativeValidation.ok()


class GuardrailsProcessor:
    """
    Encapsulates Stage A logic:
    - Length / type validation
    - Sanitization of the narrative
    - Prompt-injection scan (warn or block, per config)
    """

    def __init__(
        self,
        validation_config: dict[str, Any] | None = None,
        security_params: dict[str, Any] | None = None,
    ) -> None:
        self.logger = logger.bind(stage="A_guardrails")

        default_validation_config: dict[str, Any] = {
            "narrative_min_chars": DEFAULT_MIN_CHARS,
            "narrative_max_chars": DEFAULT_MAX_CHARS,
            "block_on_injection": False,
        }
        if validation_config:
            default_validation_config.update(validation_config)

        self.validation_config = default_validation_config
        self.min_length = int(self.validation_config["narrative_min_chars"])
        self.max_length = int(self.validation_config["narrative_max_chars"])
        self.block_on_injection = bool(self.validation_config["block_on_injection"])

        # Wrapped as {"security": ...} so the helpers read it like parameters.yaml
        self._security_params = (
            {"security": security_params} if security_params is not None else None
        )

    def validate_and_sanitize(self, narrative: Any) -> GuardrailsResult:
        """
        Main Stage A entrypoint.

        Steps:
        1. Type / length validation (validate_narrative)
        2. Sanitization (control characters, outer whitespace)
        3. Injection scan on the sanitized text
        """
        validation = validate_narrative(
            narrative,
            min_length=self.min_length,
            max_length=self.max_length,
        )
        if not validation.valid:
            self.logger.info("narrative_rejected", reason=validation.error)
            return GuardrailsResult(validation=validation)

        warnings: list[str] = []

        sanitized = sanitize_text(narrative, self._security_params)
        if sanitized != narrative.strip():
            warnings.append("Narrative was sanitized to remove control characters.")

        # Re-check: removing control characters can push a narrative under the minimum
        if len(sanitized) < self.min_length:
            validation = NarrativeValidation.rejected(
                f"Narrative must be at least {self.min_length} characters long"
            )
            self.logger.info("narrative_rejected_after_sanitize", reason=validation.error)
            return GuardrailsResult(validation=validation, warnings=warnings)

        injection = detect_injection(sanitized, self._security_params)
        if injection.has_findings:
            self.logger.warning(
                "injection_patterns_detected",
                patterns=injection.detected_patterns,
                risk_score=injection.risk_score,
                blocking=self.block_on_injection and not injection.is_safe,
            )
            warnings.append(
                f"Possible prompt injection detected (risk: {injection.risk_score:.2f})"
            )
            if self.block_on_injection and not injection.is_safe:
                validation = NarrativeValidation.rejected(
                    "Narrative contains disallowed instructions"
                )
                return GuardrailsResult(validation=validation, warnings=warnings)

        self.logger.info(
            "narrative_accepted",
            narrative_chars=len(sanitized),
            warnings=len(warnings),
        )
        return GuardrailsResult(
            validation=validation,
            sanitized_narrative=sanitized,
            warnings=warnings,
        )


__all__ = [
    "DEFAULT_MIN_CHARS",
    "DEFAULT_MAX_CHARS",
    "validate_narrative",
    "GuardrailsProcessor",
]
