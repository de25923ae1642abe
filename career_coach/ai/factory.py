import os

from career_coach.ai.config import load_ai_config
from career_coach.ai.providers.openai_provider import OpenAIProvider
from career_coach.ai.types import CompletionClient, CompletionError


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def llm_enabled() -> bool:
    enabled = (os.getenv("COACH_LLM_ENABLED") or "1").strip().lower() in {"1", "true", "yes", "y", "on"}
    if not enabled:
        return False
    api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    return bool(api_key) and not _looks_like_placeholder(api_key)


def get_completion_client() -> CompletionClient:
    cfg = load_ai_config()

    if not llm_enabled():
        raise CompletionError("AI is not configured; set OPENAI_API_KEY.", code="llm_disabled")

    if cfg.provider == "openai":
        return OpenAIProvider(model=cfg.model, timeout_s=cfg.timeout_s, temperature=cfg.temperature)

    raise CompletionError(f"Unsupported AI_PROVIDER='{cfg.provider}'", code="llm_disabled")
