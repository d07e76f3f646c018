"""
Prompt Injection Detection & Sanitization
=========================================

Lightweight checks applied to the user's career narrative before it is
embedded into the roadmap prompt.

1. Pattern-based detection
   - Regex patterns (critical and suspicious) read from
     `parameters/parameters.yaml`, so they can change without code changes.

2. Heuristic analysis
   - Special-character and newline ratios to catch obfuscated or
     multi-block payloads.

3. Sanitization
   - Removal of non-whitespace control characters. Newlines are kept:
     narratives are prose and paragraph breaks carry meaning.

Configuration:

    security:
      critical_patterns: [...]
      suspicious_patterns: [...]
      control_chars_except_whitespace: "[\\x00-\\x08\\x0B-\\x0C\\x0E-\\x1F\\x7F]"

Missing configuration means no patterns (heuristics still run).
"""

from __future__ import annotations

import re
from typing import Any, Dict, Tuple

from schemas.internal_schema import InjectionDetectionResult
from functions.utils.common import load_security_params

DEFAULT_CONTROL_CHARS = r"[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]"


def _patterns(params: Dict[str, Any] | None = None) -> Tuple[tuple[str, ...], tuple[str, ...]]:
    security = load_security_params(params)
    critical = tuple(security.get("critical_patterns", []) or [])
    suspicious = tuple(security.get("suspicious_patterns", []) or [])
    return critical, suspicious


def detect_injection(text: str, params: Dict[str, Any] | None = None) -> InjectionDetectionResult:
    """
    Analyze a narrative for potential prompt injection.

    Returns:
        InjectionDetectionResult:
            - `is_safe` is False if any critical pattern matched.
            - `detected_patterns` holds tags such as "CRITICAL: <regex>",
              "SUSPICIOUS: <regex>", "HEURISTIC: HIGH_SPECIAL_CHAR_RATIO".
            - `risk_score` reflects the highest severity finding.
    """
    if not isinstance(text, str) or not text.strip():
        return InjectionDetectionResult.safe()

    critical_patterns, suspicious_patterns = _patterns(params)

    detected: list[str] = []
    risk_score = 0.0

    for pattern in critical_patterns:
        if re.search(pattern, text, re.IGNORECASE):
            detected.append(f"CRITICAL: {pattern}")
            risk_score = 1.0

    if risk_score < 1.0:
        for pattern in suspicious_patterns:
            if re.search(pattern, text, re.IGNORECASE):
                detected.append(f"SUSPICIOUS: {pattern}")
                risk_score = max(risk_score, 0.6)

    total_len = len(text)

    special_ratio = sum(1 for c in text if not c.isalnum() and not c.isspace()) / max(total_len, 1)
    if special_ratio > 0.3:
        detected.append("HEURISTIC: HIGH_SPECIAL_CHAR_RATIO")
        risk_score = max(risk_score, 0.5)

    newline_ratio = text.count("\n") / max(total_len, 1)
    if newline_ratio > 0.1:
        detected.append("HEURISTIC: EXCESSIVE_NEWLINES")
        risk_score = max(risk_score, 0.4)

    return InjectionDetectionResult(
        is_safe=(risk_score < 0.8),
        detected_patterns=list(dict.fromkeys(detected)),
        risk_score=risk_score,
    )


def sanitize_text(text: str, params: Dict[str, Any] | None = None) -> str:
    """
    Strip non-whitespace control characters and surrounding whitespace.

    Inner whitespace (including newlines) is preserved.
    """
    control_chars = load_security_params(params).get(
        "control_chars_except_whitespace", DEFAULT_CONTROL_CHARS
    )
    return re.sub(control_chars, "", text).strip()


__all__ = ["detect_injection", "sanitize_text"]
