"""
Utility helpers: JSON extraction, security, LLM client, config.
"""

from .json_extraction import extract_json_object, strip_code_fences
from .security_functions import detect_injection, sanitize_text

__all__ = [
    "extract_json_object",
    "strip_code_fences",
    "detect_injection",
    "sanitize_text",
]
