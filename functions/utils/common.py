# functions/utils/common.py
"""
common utility helpers used across the forge pipeline.

This includes:
- YAML loading for parameters/parameters.yaml (cached)
- Typed accessors for the generation / validation / normalization blocks
- Pydantic dump helper used by the API layer and the CLI
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import structlog
import yaml

logger = structlog.get_logger().bind(module="utils.common")

# Root of project (two dirs up from utils/)
ROOT = Path(__file__).resolve().parents[2]
PARAMETERS_PATH = ROOT / "parameters" / "parameters.yaml"

_PARAMETERS_CACHE: Dict[str, Any] | None = None

# ---------------------------------------------------------------------------
# yaml reader
# ---------------------------------------------------------------------------


def load_yaml_dict(path: str | Path) -> dict[str, Any]:
    """
    Load a YAML file into a dict. Accepts either a string path or a Path object.
    Returns {} on any error, and logs via structlog.
    """
    try:
        p = Path(path)
        if not p.exists():
            logger.info("yaml_file_missing", path=str(p))
            return {}

        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            logger.error("yaml_file_not_a_mapping", path=str(p), root_type=type(data).__name__)
            return {}

        return data
    except Exception as exc:
        logger.error("yaml_file_load_error", path=str(path), error=str(exc))
        return {}


# ---------------------------------------------------------------------------
# Full parameters.yaml loader (cached)
# ---------------------------------------------------------------------------


def load_all_parameters() -> Dict[str, Any]:
    """Load and cache the entire parameters/parameters.yaml file."""
    global _PARAMETERS_CACHE
    if _PARAMETERS_CACHE is not None:
        return _PARAMETERS_CACHE

    _PARAMETERS_CACHE = load_yaml_dict(PARAMETERS_PATH)
    if not _PARAMETERS_CACHE:
        logger.warning("parameters_yaml_empty_or_missing", path=str(PARAMETERS_PATH))
    return _PARAMETERS_CACHE


def reset_parameters_cache() -> None:
    """Forget the cached parameters (tests / config reloads)."""
    global _PARAMETERS_CACHE
    _PARAMETERS_CACHE = None


def _section(params: Dict[str, Any] | None, name: str) -> Dict[str, Any]:
    if params is None:
        params = load_all_parameters()
    block = params.get(name, {}) or {}
    if not isinstance(block, dict):
        logger.warning("parameters_section_not_dict", section=name, raw_type=type(block).__name__)
        return {}
    return block


def load_generation_params(params: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """`generation` block: model_name, temperature, top_p, max_tokens."""
    return _section(params, "generation")


def load_validation_params(params: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """`validation` block: narrative length bounds and injection policy."""
    return _section(params, "validation")


def load_normalization_params(params: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """`normalization` block: strict / lenient handling of missing fields."""
    return _section(params, "normalization")


def load_security_params(params: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """`security` block: critical / suspicious regex patterns."""
    return _section(params, "security")


# ---------------------------------------------------------------------------
# Pydantic helpers
# ---------------------------------------------------------------------------


def model_dump_compat(model_obj: Any) -> Dict[str, Any]:
    """Dump a response model to its JSON wire form (camelCase aliases)."""
    if hasattr(model_obj, "model_dump"):
        return model_obj.model_dump(mode="json", by_alias=True)
    return model_obj.dict(by_alias=True)


__all__ = [
    "ROOT",
    "PARAMETERS_PATH",
    "load_yaml_dict",
    "load_all_parameters",
    "reset_parameters_cache",
    "load_generation_params",
    "load_validation_params",
    "load_normalization_params",
    "load_security_params",
    "model_dump_compat",
]
