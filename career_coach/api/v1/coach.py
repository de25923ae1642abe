from fastapi import APIRouter, Depends

from career_coach.api.v1.deps import get_coach_service, raise_http_error
from career_coach.core.errors import CoachError
from career_coach.core.security import bearer_user_id, resolve_user_id
from career_coach.schemas.coach import (
    CareerDevelopmentRequest,
    CareerPlanRequest,
    CareerPlanResponse,
    ChatRequest,
    ChatResponse,
    CoverLetterResponse,
    InterviewPrepRequest,
    InterviewPrepResponse,
    JobAnalyticsRequest,
    JobSearchRequest,
    JobSearchResponse,
    OptimizedResumeResponse,
    ResumeAnalysisResponse,
    ResumeAndCoverLetterResponse,
    ResumeRequest,
)
from career_coach.services.coach_service import CoachService

router = APIRouter()

# Handlers are plain `def`: the AI client blocks, so FastAPI runs them in its threadpool.


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
def chat(
    payload: ChatRequest,
    service: CoachService = Depends(get_coach_service),
    token_user_id: str | None = Depends(bearer_user_id),
):
    try:
        return service.chat(payload, resolve_user_id(token_user_id, payload.user_id))
    except CoachError as exc:
        raise_http_error(exc)


@router.post("/resume-analysis", response_model=ResumeAnalysisResponse, response_model_exclude_none=True)
def resume_analysis(
    payload: ResumeRequest,
    service: CoachService = Depends(get_coach_service),
    token_user_id: str | None = Depends(bearer_user_id),
):
    try:
        return service.analyze_resume(payload, resolve_user_id(token_user_id, payload.user_id))
    except CoachError as exc:
        raise_http_error(exc)


@router.post("/cover-letter", response_model=CoverLetterResponse, response_model_exclude_none=True)
def cover_letter(
    payload: ResumeRequest,
    service: CoachService = Depends(get_coach_service),
    token_user_id: str | None = Depends(bearer_user_id),
):
    try:
        return service.cover_letter(payload, resolve_user_id(token_user_id, payload.user_id))
    except CoachError as exc:
        raise_http_error(exc)


@router.post("/interview-prep", response_model=InterviewPrepResponse, response_model_exclude_none=True)
def interview_prep(
    payload: InterviewPrepRequest,
    service: CoachService = Depends(get_coach_service),
    token_user_id: str | None = Depends(bearer_user_id),
):
    try:
        return service.interview_prep(payload, resolve_user_id(token_user_id, payload.user_id))
    except CoachError as exc:
        raise_http_error(exc)


@router.post("/career-planning", response_model=CareerPlanResponse, response_model_exclude_none=True)
def career_planning(
    payload: CareerPlanRequest,
    service: CoachService = Depends(get_coach_service),
    token_user_id: str | None = Depends(bearer_user_id),
):
    try:
        return service.career_plan(payload, resolve_user_id(token_user_id, payload.user_id))
    except CoachError as exc:
        raise_http_error(exc)


@router.post("/career-development", response_model=CareerPlanResponse, response_model_exclude_none=True)
def career_development(
    payload: CareerDevelopmentRequest,
    service: CoachService = Depends(get_coach_service),
    token_user_id: str | None = Depends(bearer_user_id),
):
    try:
        return service.career_development(payload, resolve_user_id(token_user_id, payload.user_id))
    except CoachError as exc:
        raise_http_error(exc)


@router.post("/update-resume", response_model=OptimizedResumeResponse, response_model_exclude_none=True)
def update_resume(
    payload: ResumeRequest,
    service: CoachService = Depends(get_coach_service),
    token_user_id: str | None = Depends(bearer_user_id),
):
    try:
        return service.optimize_resume(payload, resolve_user_id(token_user_id, payload.user_id))
    except CoachError as exc:
        raise_http_error(exc)


@router.post(
    "/generate-resume-coverletter",
    response_model=ResumeAndCoverLetterResponse,
    response_model_exclude_none=True,
)
def generate_resume_coverletter(
    payload: ResumeRequest,
    service: CoachService = Depends(get_coach_service),
    token_user_id: str | None = Depends(bearer_user_id),
):
    try:
        return service.generate_resume_and_cover_letter(payload, resolve_user_id(token_user_id, payload.user_id))
    except CoachError as exc:
        raise_http_error(exc)


@router.post("/job-search", response_model=JobSearchResponse)
def job_search(
    payload: JobSearchRequest,
    service: CoachService = Depends(get_coach_service),
    token_user_id: str | None = Depends(bearer_user_id),
):
    try:
        return service.job_search(payload, resolve_user_id(token_user_id, payload.user_id))
    except CoachError as exc:
        raise_http_error(exc)


@router.post("/job-analytics")
def job_analytics(
    payload: JobAnalyticsRequest,
    service: CoachService = Depends(get_coach_service),
    token_user_id: str | None = Depends(bearer_user_id),
):
    try:
        return service.job_analytics(payload, resolve_user_id(token_user_id, payload.user_id))
    except CoachError as exc:
        raise_http_error(exc)
