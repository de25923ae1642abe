from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, TypeVar

from dotenv import load_dotenv

load_dotenv()

_TRUTHY = {"1", "true", "yes", "y", "on"}
_DEFAULT_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://localhost:3007",
)

N = TypeVar("N", int, float)


def _env(name: str, default: str | None = None) -> str | None:
    """Environment lookup where an empty string counts as unset."""
    value = (os.getenv(name) or "").strip()
    return value or default


def _env_flag(name: str, default: bool) -> bool:
    raw = _env(name)
    return default if raw is None else raw.lower() in _TRUTHY


def _env_number(name: str, default: N, cast: Callable[[str], N]) -> N:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        return default


def _env_csv(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    items = tuple(item.strip() for item in (_env(name) or "").split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class Settings:
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_credentials: bool
    store_db_path: str
    jwt_secret: str
    jwt_algorithm: str
    jwt_ttl_days: int
    ai_model: str
    ai_timeout_s: float
    ai_temperature: float
    pipeline_config_path: str | None
    guest_user_id: str


def load_settings() -> Settings:
    loaded = Settings(
        rate_limit=_env("RATE_LIMIT", "60/minute"),
        rate_limit_enabled=_env_flag("RATE_LIMIT_ENABLED", True),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        sentry_dsn=_env("SENTRY_DSN"),
        cors_allowed_origins=_env_csv("CORS_ALLOWED_ORIGINS", _DEFAULT_ORIGINS),
        cors_allow_credentials=_env_flag("CORS_ALLOW_CREDENTIALS", False),
        store_db_path=_env("COACH_DB_PATH", "data/career_coach.db"),
        jwt_secret=_env("JWT_SECRET", "local-dev-secret-change-me-before-deploying"),
        jwt_algorithm=_env("JWT_ALGORITHM", "HS256"),
        jwt_ttl_days=_env_number("JWT_TTL_DAYS", 7, int),
        ai_model=_env("AI_MODEL") or _env("OPENAI_MODEL", "gpt-4o-mini"),
        ai_timeout_s=_env_number("AI_TIMEOUT_S", 60.0, float),
        ai_temperature=_env_number("AI_TEMPERATURE", 0.7, float),
        pipeline_config_path=_env("PIPELINE_CONFIG_PATH"),
        guest_user_id=_env("GUEST_USER_ID", "guest-user"),
    )
    if loaded.jwt_ttl_days < 1:
        raise RuntimeError("JWT_TTL_DAYS must be at least 1.")
    if loaded.ai_timeout_s <= 0:
        raise RuntimeError("AI_TIMEOUT_S must be a positive number of seconds.")
    return loaded


settings = load_settings()
