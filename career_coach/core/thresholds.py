from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from career_coach.core.config import settings

_PIPELINE_CONFIG_CACHE: dict[str, Any] | None = None
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "pipeline.yaml"


def _config_path() -> Path:
    return Path(settings.pipeline_config_path) if settings.pipeline_config_path else _DEFAULT_CONFIG_PATH


def _load(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise RuntimeError(f"Pipeline config not found at '{path}'. Expected file: config/pipeline.yaml")
    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RuntimeError(f"Failed to read pipeline config '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in pipeline config '{path}': {exc}") from exc
    if not isinstance(parsed, dict):
        raise RuntimeError(f"Invalid pipeline config '{path}': expected a top-level mapping.")
    return parsed


def get_pipeline_config() -> dict[str, Any]:
    """Thresholds, keyword vocabulary and plan catalog from config/pipeline.yaml (cached)."""
    global _PIPELINE_CONFIG_CACHE
    if _PIPELINE_CONFIG_CACHE is None:
        _PIPELINE_CONFIG_CACHE = _load(_config_path())
    return _PIPELINE_CONFIG_CACHE


def get_threshold(path: str, default: Any = None) -> Any:
    """Dot-path lookup, e.g. ``get_threshold("sections.backfill_chars", 500)``."""
    if not path:
        return default
    current: Any = get_pipeline_config()
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def get_vocabulary() -> tuple[str, ...]:
    raw = get_threshold("keywords.vocabulary", []) or []
    terms = [str(term).strip().lower() for term in raw if str(term).strip()]
    return tuple(dict.fromkeys(terms))
