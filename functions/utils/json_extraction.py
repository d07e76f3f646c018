# functions/utils/json_extraction.py
"""
Helpers for pulling a JSON object out of free-form LLM output.

Model replies are untrusted text: they may be wrapped in ```json fences,
preceded by chatter ("Sure! Here is your roadmap:"), contain trailing commas,
or hold braces inside string values. The helpers here:

- strip_code_fences:      remove leading/trailing fences and stray backticks
- find_json_object_spans: yield balanced top-level ``{...}`` spans using a
                          depth counter that understands JSON strings/escapes
- extract_json_object:    first span that parses to a JSON object

Raises ``NoJSONFoundError`` / ``ResponseParseError`` from
functions.utils.errors; it never returns a partial result.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterator, Tuple

import structlog

from functions.utils.errors import NoJSONFoundError, ResponseParseError

logger = structlog.get_logger(__name__).bind(module="json_extraction")

_LEADING_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_+-]*\s*")
_TRAILING_FENCE_RE = re.compile(r"\s*```$")


def strip_code_fences(raw: str | None) -> str:
    """
    Remove markdown code-fence wrappers such as:

        ```json
        { ... }
        ```

    plus any stray backticks left at either end.
    """
    if not raw:
        return ""

    text = raw.strip()
    text = _LEADING_FENCE_RE.sub("", text)
    text = _TRAILING_FENCE_RE.sub("", text)
    return text.strip("`").strip()


def _find_closing_brace(text: str, start: int) -> int | None:
    """Index of the ``}`` closing the object opened at ``start``, or None."""
    depth = 0
    in_string = False
    escape_next = False

    for i in range(start, len(text)):
        char = text[i]

        if escape_next:
            escape_next = False
            continue

        if in_string:
            if char == "\\":
                escape_next = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i

    return None


def find_json_object_spans(text: str) -> Iterator[Tuple[int, int]]:
    """
    Yield ``(start, end)`` slices of balanced top-level ``{...}`` candidates,
    left to right.

    If an opening brace is never closed (typically a truncated reply), the
    last candidate falls back to "that brace up to the last ``}``" so the
    caller still gets something to try.
    """
    pos = 0
    while True:
        start = text.find("{", pos)
        if start == -1:
            return

        end = _find_closing_brace(text, start)
        if end is None:
            last = text.rfind("}")
            if last > start:
                yield start, last + 1
            return

        yield start, end + 1
        pos = end + 1


def _strip_trailing_commas(text: str) -> str:
    """Drop commas that directly precede ``}`` / ``]``, outside string literals."""
    out: list[str] = []
    in_string = False
    escape_next = False

    for i, char in enumerate(text):
        if escape_next:
            escape_next = False
        elif in_string:
            if char == "\\":
                escape_next = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == ",":
            j = i + 1
            while j < len(text) and text[j].isspace():
                j += 1
            if j < len(text) and text[j] in "}]":
                continue
        out.append(char)

    return "".join(out)


def _loads_tolerant(candidate: str) -> Any:
    """json.loads, retried once with trailing commas removed."""
    try:
        return json.loads(candidate)
    except ValueError:
        repaired = _strip_trailing_commas(candidate)
        if repaired == candidate:
            raise
        data = json.loads(repaired)
        logger.info("json_trailing_commas_repaired")
        return data


def extract_json_object(raw: str | None) -> Dict[str, Any]:
    """
    Return the first JSON object embedded in ``raw``.

    Raises:
        NoJSONFoundError:   no ``{...}`` candidate at all.
        ResponseParseError: candidates exist but none is valid JSON.
    """
    cleaned = strip_code_fences(raw)
    spans = list(find_json_object_spans(cleaned))
    if not spans:
        logger.warning("json_object_not_found", text_length=len(cleaned))
        raise NoJSONFoundError()

    # ValueError also covers over-long integer literals; RecursionError, deep nesting.
    first_error: Exception | None = None
    for start, end in spans:
        try:
            data = _loads_tolerant(cleaned[start:end])
        except (ValueError, RecursionError) as exc:
            if first_error is None:
                first_error = exc
            continue
        if isinstance(data, dict):
            if start > 0 or end < len(cleaned):
                logger.info(
                    "json_object_extracted_from_surrounding_text",
                    leading_chars=start,
                    trailing_chars=len(cleaned) - end,
                )
            return data

    logger.warning(
        "json_object_parse_failed",
        candidates=len(spans),
        error=str(first_error) if first_error else None,
    )
    raise ResponseParseError() from first_error


__all__ = [
    "strip_code_fences",
    "find_json_object_spans",
    "extract_json_object",
]
