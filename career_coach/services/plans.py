from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, Field

from career_coach.core.store import CoachStore
from career_coach.core.thresholds import get_threshold

logger = logging.getLogger(__name__)

FEATURES = (
    "chat",
    "resumeAnalysis",
    "interviewPrep",
    "careerPlanning",
    "coverLetter",
    "jobSearch",
    "jobAnalytics",
)
ALWAYS_ALLOWED = frozenset({"resumeAnalysis", "coverLetter"})
_INITIAL_USAGE_KEYS = ("chat", "resumeAnalysis", "interviewPrep", "careerPlanning", "coverLetter")
UNLIMITED = -1


class PlanDefinition(BaseModel):
    name: str
    price: float = Field(ge=0)
    duration: str
    description: str = ""
    features: list[str] = Field(default_factory=list)
    limits: dict[str, int] = Field(default_factory=dict)

    def limit_for(self, feature: str) -> int:
        return int(self.limits.get(feature, UNLIMITED))


@dataclass(frozen=True)
class AccessDecision:
    access: bool
    message: str
    trial_expired: bool = False
    days_remaining: int | None = None


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    message: str


def _now() -> datetime:
    return datetime.now(timezone.utc)


def load_plans() -> dict[str, PlanDefinition]:
    catalog = get_threshold("plans.catalog", {}) or {}
    if not isinstance(catalog, dict) or not catalog:
        raise RuntimeError("Pipeline config is missing 'plans.catalog'.")
    return {key: PlanDefinition.model_validate(value) for key, value in catalog.items()}


def trial_days() -> int:
    return max(1, int(get_threshold("plans.trial_days", 7)))


def _days_remaining(trial_end: datetime, now: datetime) -> int:
    return max(0, math.ceil((trial_end - now).total_seconds() / 86400))


def _start_trial(store: CoachStore, user_id: str, now: datetime) -> dict[str, Any]:
    subscription = {
        "plan": "free",
        "start_date": now,
        "trial_end_date": now + timedelta(days=trial_days()),
        "usage": {feature: 0 for feature in _INITIAL_USAGE_KEYS},
    }
    stored = store.ensure_subscription(user_id, **subscription)
    logger.info("trial_started user_id=%s days=%s", user_id, trial_days())
    return stored


def check_access(store: CoachStore, user_id: str, feature: str, *, now: datetime | None = None) -> AccessDecision:
    """Decide whether ``user_id`` may use ``feature`` under its current plan.

    Resume analysis and cover letters are always available. Any other
    feature starts a free trial on first use; an expired trial or an
    exhausted per-feature limit denies access.
    """
    if feature in ALWAYS_ALLOWED:
        return AccessDecision(access=True, message="Access granted")

    now = now or _now()
    subscription = store.get_subscription(user_id) or _start_trial(store, user_id, now)
    plans = load_plans()
    plan = plans.get(subscription["plan"]) or plans["free"]
    used = int(subscription["usage"].get(feature, 0))
    limit = plan.limit_for(feature)
    over_limit = limit != UNLIMITED and used >= limit

    if subscription["plan"] == "free":
        trial_end = subscription["trial_end_date"] or subscription["start_date"] + timedelta(days=trial_days())
        if now > trial_end:
            return AccessDecision(
                access=False,
                message=(
                    f"Your {trial_days()}-day free trial has expired. "
                    "Please upgrade to continue using our premium features."
                ),
                trial_expired=True,
                days_remaining=0,
            )
        days_remaining = _days_remaining(trial_end, now)
        if over_limit:
            return AccessDecision(
                access=False,
                message=f"Free trial limit reached for {feature}. Please upgrade to continue.",
                days_remaining=days_remaining,
            )
        return AccessDecision(access=True, message="Access granted", days_remaining=days_remaining)

    if over_limit:
        return AccessDecision(access=False, message=f"Usage limit reached for {feature}. Please upgrade your plan.")
    return AccessDecision(access=True, message="Access granted")


def record_usage(store: CoachStore, user_id: str, feature: str) -> dict[str, int]:
    """Count one use of ``feature`` and return the user's plan usage counters."""
    store.record_feature_use(user_id, feature)
    return store.increment_usage(user_id, feature) or {}


def current_usage(store: CoachStore, user_id: str) -> dict[str, int]:
    subscription = store.get_subscription(user_id)
    return dict(subscription["usage"]) if subscription else {}


def process_payment(
    store: CoachStore,
    user_id: str,
    plan_name: str,
    payment_method: str | None = None,
) -> PaymentResult:
    # Simulated checkout: no provider is contacted.
    plan = load_plans().get(plan_name or "")
    if plan is None:
        return PaymentResult(success=False, message="Invalid plan selected")

    store.save_subscription(
        user_id,
        plan=plan_name,
        start_date=_now(),
        trial_end_date=None,
        usage={feature: 0 for feature in _INITIAL_USAGE_KEYS},
    )
    store.record_payment(user_id, plan=plan_name, amount=plan.price, payment_method=payment_method)
    logger.info("payment_processed user_id=%s plan=%s amount=%.2f", user_id, plan_name, plan.price)
    return PaymentResult(success=True, message=f"Successfully upgraded to {plan.name}")


def user_analytics(store: CoachStore, user_id: str, *, now: datetime | None = None) -> dict[str, Any] | None:
    stats = store.user_usage_stats(user_id)
    subscription = store.get_subscription(user_id)
    if stats is None or subscription is None:
        return None

    now = now or _now()
    trial_end = subscription["trial_end_date"]
    return {
        "totalUsage": stats["total_usage"],
        "featuresUsed": stats["features_used"],
        "lastActivity": stats["last_activity"],
        "currentPlan": subscription["plan"],
        "usage": subscription["usage"],
        "trialEndDate": trial_end,
        "daysRemaining": _days_remaining(trial_end, now) if subscription["plan"] == "free" and trial_end else None,
    }


def system_analytics(store: CoachStore) -> dict[str, Any]:
    return {
        "totalUsers": store.count_users(),
        "activeUsers": store.active_users(),
        "featureStats": {
            feature: {"totalUsage": data["total_usage"], "uniqueUsers": data["unique_users"]}
            for feature, data in store.feature_stats().items()
        },
        "totalRevenue": store.total_revenue(),
    }
