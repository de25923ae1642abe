from fastapi import APIRouter, Depends, HTTPException, status

from career_coach.core.security import bearer_user_id, get_store, require_user_id, resolve_user_id
from career_coach.core.store import CoachStore
from career_coach.schemas.coach import (
    PaymentPlanOut,
    PaymentRequest,
    PaymentResponse,
    SystemAnalyticsResponse,
    UserAnalyticsResponse,
)
from career_coach.services import plans

router = APIRouter()


@router.get("/payment-plans", response_model=dict[str, PaymentPlanOut])
def payment_plans():
    return {key: PaymentPlanOut.model_validate(plan.model_dump()) for key, plan in plans.load_plans().items()}


@router.post("/process-payment", response_model=PaymentResponse)
def process_payment(
    payload: PaymentRequest,
    store: CoachStore = Depends(get_store),
    token_user_id: str | None = Depends(bearer_user_id),
):
    user_id = resolve_user_id(token_user_id, payload.user_id)
    result = plans.process_payment(store, user_id, payload.plan_name, payload.payment_method)
    return PaymentResponse(success=result.success, message=result.message)


@router.get("/user-analytics", response_model=UserAnalyticsResponse)
def user_analytics(store: CoachStore = Depends(get_store), user_id: str = Depends(require_user_id)):
    analytics = plans.user_analytics(store, user_id)
    if analytics is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User analytics not found")
    return analytics


@router.get("/system-analytics", response_model=SystemAnalyticsResponse)
def system_analytics(store: CoachStore = Depends(get_store)):
    return plans.system_analytics(store)
