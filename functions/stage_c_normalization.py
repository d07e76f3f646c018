# functions/stage_c_normalization.py
"""
Stage C: normalization of the raw model reply into a RoadmapDocument.

The model reply is untrusted. Whatever it contains, the document returned
from here always has every field present, with an allowed literal or a
default:

1. Fences / stray backticks are stripped and the first JSON object is
   extracted (functions.utils.json_extraction).
2. Top-level keys ``meta``, ``understanding`` and ``roadmap`` are required.
   Lenient mode (default) fills missing ones with defaults; strict mode
   raises MissingFieldError.
3. Constrained literals fall back to fixed values:
       skill.level        -> "beginner"
       learning.type      -> "documentation"
       community.platform -> "forum"
4. Phase ids are always rewritten to phase-1, phase-2, ... in input order.
5. Anything that should be a list but is not becomes [].

Only the shape is guaranteed. Whether the content is any good is up to the
model.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import structlog
from pydantic import ValidationError

from functions.utils.errors import MissingFieldError, RoadmapNormalizationError
from functions.utils.json_extraction import extract_json_object
from schemas.output_schema import (
    ALLOWED_COMMUNITY_PLATFORMS,
    ALLOWED_RESOURCE_TYPES,
    ALLOWED_SKILL_LEVELS,
    MAX_HOURS_PER_WEEK,
    Number,
    RoadmapDocument,
)

logger = structlog.get_logger(__name__).bind(module="stage_c_normalization")

REQUIRED_TOP_LEVEL_KEYS: tuple[str, ...] = ("meta", "understanding", "roadmap")

DEFAULT_INFERRED_CAREER = "Unknown"
DEFAULT_NOT_SPECIFIED = "Not specified"
FALLBACK_SKILL_LEVEL = "beginner"
FALLBACK_RESOURCE_TYPE = "documentation"
FALLBACK_COMMUNITY_PLATFORM = "forum"


@dataclass
class NormalizationReport:
    """Counters describing how much of the reply had to be patched."""

    missing_top_level: List[str] = field(default_factory=list)
    literal_fallbacks: int = 0
    coerced_lists: int = 0
    dropped_items: int = 0


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any, report: NormalizationReport) -> List[Any]:
    if isinstance(value, list):
        return value
    if value is not None:
        report.coerced_lists += 1
    return []


def _as_str(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _as_number(
    value: Any,
    *,
    default: Number = 0,
    minimum: Number = 0,
    maximum: Optional[Number] = None,
) -> Number:
    # Integers stay integers; comparisons below work on arbitrarily large
    # ints without a float conversion.
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip().rstrip("%"))
        except ValueError:
            return default
        if value.is_integer():
            value = int(value)
    if isinstance(value, float) and not math.isfinite(value):
        return default
    if not isinstance(value, (int, float)):
        return default

    value = max(value, minimum)
    if maximum is not None:
        value = min(value, maximum)
    return value


def _str_list(value: Any, report: NormalizationReport) -> List[str]:
    result: List[str] = []
    for item in _as_list(value, report):
        text = _as_str(item)
        if text:
            result.append(text)
        else:
            report.dropped_items += 1
    return result


def _literal(
    value: Any,
    allowed: Sequence[str],
    fallback: str,
    report: NormalizationReport,
) -> str:
    if isinstance(value, str):
        candidate = value.strip().lower()
        if candidate in allowed:
            return candidate
    report.literal_fallbacks += 1
    return fallback


# ---------------------------------------------------------------------------
# Section normalizers
# ---------------------------------------------------------------------------


def _normalize_meta(raw: Any) -> Dict[str, Any]:
    meta = _as_dict(raw)
    return {
        "inferredCareer": _as_str(meta.get("inferredCareer"), DEFAULT_INFERRED_CAREER),
        "confidence": _as_number(meta.get("confidence"), maximum=100),
    }


def _normalize_understanding(raw: Any, report: NormalizationReport) -> Dict[str, Any]:
    understanding = _as_dict(raw)
    return {
        "interests": _str_list(understanding.get("interests"), report),
        "workStyle": _as_str(understanding.get("workStyle"), DEFAULT_NOT_SPECIFIED),
        "longTermGoal": _as_str(understanding.get("longTermGoal"), DEFAULT_NOT_SPECIFIED),
        "hoursPerWeek": _as_number(
            understanding.get("hoursPerWeek"), maximum=MAX_HOURS_PER_WEEK
        ),
    }


def _normalize_skill(raw: Any, report: NormalizationReport) -> Optional[Dict[str, str]]:
    if isinstance(raw, str):
        name = raw.strip()
        level_raw: Any = None
    elif isinstance(raw, dict):
        name = _as_str(raw.get("name"))
        level_raw = raw.get("level")
    else:
        name = ""
        level_raw = None

    if not name:
        report.dropped_items += 1
        return None

    return {
        "name": name,
        "level": _literal(level_raw, ALLOWED_SKILL_LEVELS, FALLBACK_SKILL_LEVEL, report),
    }


def _normalize_phases(raw: Any, report: NormalizationReport) -> List[Dict[str, Any]]:
    phases: List[Dict[str, Any]] = []
    for item in _as_list(raw, report):
        if isinstance(item, str) and item.strip():
            item = {"title": item}
        if not isinstance(item, dict):
            report.dropped_items += 1
            continue

        number = len(phases) + 1
        skills = [
            skill
            for skill in (_normalize_skill(s, report) for s in _as_list(item.get("skills"), report))
            if skill is not None
        ]
        phases.append(
            {
                # Source ids are ignored on purpose: ordering defines identity.
                "id": f"phase-{number}",
                "title": _as_str(item.get("title"), f"Phase {number}"),
                "description": _as_str(item.get("description")),
                "skills": skills,
                "tools": _str_list(item.get("tools"), report),
                "projects": _str_list(item.get("projects"), report),
            }
        )
    return phases


def _normalize_learning(raw: Any, report: NormalizationReport) -> List[Dict[str, str]]:
    learning: List[Dict[str, str]] = []
    for item in _as_list(raw, report):
        if not isinstance(item, dict):
            report.dropped_items += 1
            continue
        learning.append(
            {
                "skill": _as_str(item.get("skill")),
                "type": _literal(
                    item.get("type"), ALLOWED_RESOURCE_TYPES, FALLBACK_RESOURCE_TYPE, report
                ),
                "title": _as_str(item.get("title")),
                "description": _as_str(item.get("description")),
            }
        )
    return learning


def _normalize_communities(raw: Any, report: NormalizationReport) -> List[Dict[str, str]]:
    communities: List[Dict[str, str]] = []
    for item in _as_list(raw, report):
        if not isinstance(item, dict):
            report.dropped_items += 1
            continue
        communities.append(
            {
                "name": _as_str(item.get("name")),
                "platform": _literal(
                    item.get("platform"),
                    ALLOWED_COMMUNITY_PLATFORMS,
                    FALLBACK_COMMUNITY_PLATFORM,
                    report,
                ),
                "purpose": _as_str(item.get("purpose")),
            }
        )
    return communities


def _normalize_roadmap(raw: Any, report: NormalizationReport) -> Dict[str, Any]:
    roadmap = _as_dict(raw)
    resources = _as_dict(roadmap.get("resources"))
    return {
        "phases": _normalize_phases(roadmap.get("phases"), report),
        "resources": {
            "learning": _normalize_learning(resources.get("learning"), report),
            "communities": _normalize_communities(resources.get("communities"), report),
        },
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def find_missing_top_level_keys(data: Dict[str, Any]) -> List[str]:
    """Required keys that are absent or not JSON objects."""
    return [key for key in REQUIRED_TOP_LEVEL_KEYS if not isinstance(data.get(key), dict)]


def normalize_roadmap_data(data: Dict[str, Any], *, strict: bool = False) -> RoadmapDocument:
    """Coerce an already-parsed reply object into a RoadmapDocument."""
    report = NormalizationReport(missing_top_level=find_missing_top_level_keys(data))

    if report.missing_top_level:
        if strict:
            logger.warning("normalization_missing_fields", missing=report.missing_top_level)
            raise MissingFieldError(report.missing_top_level)
        logger.info("normalization_defaults_for_missing_fields", missing=report.missing_top_level)

    normalized = {
        "meta": _normalize_meta(data.get("meta")),
        "understanding": _normalize_understanding(data.get("understanding"), report),
        "roadmap": _normalize_roadmap(data.get("roadmap"), report),
    }

    try:
        document = RoadmapDocument.model_validate(normalized)
    except ValidationError as exc:  # pragma: no cover - normalizers only emit valid values
        logger.error("normalization_schema_violation", errors=exc.error_count())
        raise RoadmapNormalizationError("Normalized roadmap failed schema validation") from exc

    logger.info(
        "normalization_completed",
        phases=len(document.roadmap.phases),
        learning_resources=len(document.roadmap.resources.learning),
        communities=len(document.roadmap.resources.communities),
        literal_fallbacks=report.literal_fallbacks,
        coerced_lists=report.coerced_lists,
        dropped_items=report.dropped_items,
    )
    return document


def normalize_roadmap_response(raw_text: str | None, *, strict: bool = False) -> RoadmapDocument:
    """
    Main Stage C entrypoint: raw reply text in, schema-complete document out.

    Raises:
        NoJSONFoundError:   no JSON object in the reply
        ResponseParseError: JSON candidate is malformed
        MissingFieldError:  strict mode only, required top-level key absent
    """
    data = extract_json_object(raw_text)
    return normalize_roadmap_data(data, strict=strict)


__all__ = [
    "REQUIRED_TOP_LEVEL_KEYS",
    "FALLBACK_SKILL_LEVEL",
    "FALLBACK_RESOURCE_TYPE",
    "FALLBACK_COMMUNITY_PLATFORM",
    "NormalizationReport",
    "find_missing_top_level_keys",
    "normalize_roadmap_data",
    "normalize_roadmap_response",
]
