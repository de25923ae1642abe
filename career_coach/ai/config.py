import os
from dataclasses import dataclass

from career_coach.core.config import settings


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    timeout_s: float
    temperature: float


def load_ai_config() -> AIConfig:
    provider = os.getenv("AI_PROVIDER", "openai").strip().lower()
    return AIConfig(
        provider=provider,
        model=settings.ai_model,
        timeout_s=settings.ai_timeout_s,
        temperature=settings.ai_temperature,
    )
