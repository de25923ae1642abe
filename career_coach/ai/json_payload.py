from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def strip_code_fences(content: str) -> str:
    cleaned = (content or "").strip()
    if cleaned.startswith("```"):
        cleaned = "\n".join(cleaned.splitlines()[1:])
    if cleaned.endswith("```"):
        cleaned = "\n".join(cleaned.splitlines()[:-1])
    return cleaned.strip()


def parse_json_payload(content: str | None) -> dict[str, Any] | None:
    """Best-effort JSON object extraction from model output; ``None`` when it is not JSON."""
    cleaned = strip_code_fences(content or "")
    if not cleaned or "{" not in cleaned:
        return None

    try:
        data = json.loads(cleaned)
    except ValueError as exc:
        logger.debug("json_payload_parse_failed first_attempt: %s", exc)
    else:
        return data if isinstance(data, dict) else None

    # Some models wrap the object in commentary; cut to the outermost braces.
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(cleaned[start : end + 1])
    except ValueError as exc:
        logger.debug("json_payload_parse_failed after_trim: %s", exc)
        return None
    return data if isinstance(data, dict) else None
