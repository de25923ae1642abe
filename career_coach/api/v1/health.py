from fastapi import APIRouter, Request

from career_coach.ai.factory import llm_enabled

router = APIRouter()


@router.get("/health", summary="Health Check", description="Report service status and whether AI completions are configured.")
async def health_check(request: Request):
    store = getattr(request.app.state, "store", None)
    return {
        "status": "healthy",
        "llm": "configured" if llm_enabled() else "disabled",
        "store": "ready" if store is not None else "unavailable",
    }
