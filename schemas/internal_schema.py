"""Internal schemas for guardrail and security utilities.

These models are not part of the external API contract. They structure
internal signals (prompt injection findings, narrative validation outcomes)
in a consistent, type-safe way across the pipeline stages.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, model_validator


# ---------------------------------------------------------------------------
# Security / Prompt Injection
# ---------------------------------------------------------------------------


class InjectionDetectionResult(BaseModel):
    """Standardized result for prompt injection detection.

    Attributes:
        is_safe:
            True if the scanned text is considered safe enough to continue.
        detected_patterns:
            Tags of the patterns / heuristics that triggered, e.g.
            "CRITICAL: ignore\\s+previous", "HEURISTIC: HIGH_SPECIAL_CHAR_RATIO".
        risk_score:
            Normalized risk score in [0.0, 1.0]:
              - 0.0  = no known issues
              - ~0.4 = low risk (heuristics only)
              - ~0.6 = medium risk (suspicious)
              - 1.0  = high risk (critical patterns)
    """

    is_safe: bool = Field(
        ...,
        description="True if the input is considered safe enough to process.",
    )
    detected_patterns: List[str] = Field(
        default_factory=list,
        description="List of patterns / heuristics that were triggered.",
    )
    risk_score: float = Field(
        0.0,
        ge=0.0,
        le=1.0,
        description="Normalized risk score in [0.0, 1.0].",
    )

    @model_validator(mode="after")
    def _auto_is_safe_from_risk(self) -> "InjectionDetectionResult":
        """High-risk results are never marked safe."""
        if self.risk_score >= 0.8 and self.is_safe:
            self.is_safe = False
        return self

    @property
    def has_findings(self) -> bool:
        return bool(self.detected_patterns)

    @classmethod
    def safe(cls) -> "InjectionDetectionResult":
        """Convenience factory for a clean 'no issues' result."""
        return cls(is_safe=True, detected_patterns=[], risk_score=0.0)


# ---------------------------------------------------------------------------
# Stage A: narrative validation
# ---------------------------------------------------------------------------


class NarrativeValidation(BaseModel):
    """Outcome of validating a raw narrative value.

    ``error`` is a human-readable reason and is set exactly when
    ``valid`` is False.
    """

    valid: bool = Field(..., description="True if the narrative can proceed.")
    error: str | None = Field(default=None, description="Why the narrative was rejected.")

    @model_validator(mode="after")
    def _error_iff_invalid(self) -> "NarrativeValidation":
        if self.valid and self.error is not None:
            raise ValueError("A valid narrative cannot carry an error")
        if not self.valid and not self.error:
            raise ValueError("An invalid narrative needs a reason")
        return self

    @classmethod
    def ok(cls) -> "NarrativeValidation":
        return cls(valid=True, error=None)

    @classmethod
    def rejected(cls, reason: str) -> "NarrativeValidation":
        return cls(valid=False, error=reason)


class GuardrailsResult(BaseModel):
    """Stage A result: validation outcome plus the sanitized narrative."""

    validation: NarrativeValidation
    sanitized_narrative: str | None = None
    warnings: List[str] = Field(
        default_factory=list,
        description="Non-blocking findings (sanitization, injection heuristics).",
    )

    @property
    def is_valid(self) -> bool:
        return self.validation.valid
