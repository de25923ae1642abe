from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from career_coach.pipeline.sections import ResumeSections

InterviewMode = Literal["interactive", "standard"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UsageResponse(CamelModel):
    usage: dict[str, int] = Field(default_factory=dict)
    note: str | None = None


# Requests


class ChatRequest(CamelModel):
    message: str = Field(min_length=1, max_length=8000)
    user_id: str | None = None


class ResumeRequest(CamelModel):
    resume: str = Field(default="", max_length=50000)
    job_description: str = Field(default="", max_length=50000)
    user_id: str | None = None


class InterviewPrepRequest(CamelModel):
    role: str | None = Field(default=None, max_length=300)
    job_description: str | None = Field(default=None, max_length=50000)
    type: InterviewMode = "standard"
    user_id: str | None = None


class CareerPlanRequest(CamelModel):
    current_role: str | None = Field(default=None, max_length=300)
    target_role: str | None = Field(default=None, max_length=300)
    experience: str | int | float | None = None
    user_id: str | None = None


class CareerDevelopmentRequest(CamelModel):
    goals: str = Field(default="", max_length=8000)
    current_skills: str = Field(default="", max_length=8000)
    user_id: str | None = None


class JobSearchRequest(CamelModel):
    job_title: str | None = None
    query: str | None = None
    location: str | None = None
    job_type: str | None = None
    experience_level: str | None = None
    salary_range: str | None = None
    user_id: str | None = None


class JobAnalyticsRequest(CamelModel):
    query: str | None = None
    user_id: str | None = None


class PaymentRequest(CamelModel):
    plan_name: str = ""
    payment_method: str | None = None
    user_id: str | None = None


class RegisterRequest(CamelModel):
    name: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(CamelModel):
    email: str = ""
    password: str = ""


class UploadDocumentRequest(CamelModel):
    file_data: str = Field(min_length=1)
    file_name: str = Field(default="", max_length=255)
    file_type: str | None = Field(default=None, max_length=120)
    user_id: str | None = None


class DownloadRequest(CamelModel):
    content: str = ""
    title: str | None = Field(default=None, max_length=200)


# Responses


class ChatResponse(UsageResponse):
    response: str


class KeywordSummary(CamelModel):
    job_keywords: list[str] = Field(default_factory=list)
    matched_keywords: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)
    keyword_score: int = Field(default=0, ge=0, le=100)
    alignment_score: int = Field(default=0, ge=0, le=100)


class ResumeAnalysisResponse(UsageResponse):
    analysis: str
    score: int = Field(ge=0, le=100)
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    job_alignment: int = Field(ge=0, le=100)
    keywords: KeywordSummary = Field(default_factory=KeywordSummary)


class CoverLetterResponse(UsageResponse):
    cover_letter: str


class InterviewQuestionOut(CamelModel):
    question: str
    tip: str = ""


class InterviewPrepResponse(UsageResponse):
    role: str
    questions: list[InterviewQuestionOut] = Field(default_factory=list)
    raw_text: str = ""


class CareerPlanResponse(UsageResponse):
    plan: str


class OptimizedResumeResponse(UsageResponse):
    optimized_resume: str
    sections: ResumeSections
    source: Literal["ai", "fallback"] = "fallback"


class ResumeAndCoverLetterResponse(OptimizedResumeResponse):
    cover_letter: str


class JobSearchResponse(CamelModel):
    jobs: list[dict[str, str]] = Field(default_factory=list)
    total_jobs: int = 0
    search_criteria: dict[str, Any] = Field(default_factory=dict)


class PaymentResponse(CamelModel):
    success: bool
    message: str


class PaymentPlanOut(CamelModel):
    name: str
    price: float
    duration: str
    description: str = ""
    features: list[str] = Field(default_factory=list)
    limits: dict[str, int] = Field(default_factory=dict)


class UserOut(CamelModel):
    id: str
    name: str
    email: str


class RegisterResponse(CamelModel):
    message: str
    user: UserOut


class LoginResponse(CamelModel):
    token: str
    user: UserOut


class UploadDocumentResponse(CamelModel):
    extracted_text: str
    file_name: str
    source_type: str
    warnings: list[str] = Field(default_factory=list)


class SubscriptionOut(CamelModel):
    plan: str
    start_date: datetime
    trial_end_date: datetime | None = None
    usage: dict[str, int] = Field(default_factory=dict)


class UserAnalyticsResponse(CamelModel):
    total_usage: int
    features_used: list[str] = Field(default_factory=list)
    last_activity: datetime
    current_plan: str
    usage: dict[str, int] = Field(default_factory=dict)
    trial_end_date: datetime | None = None
    days_remaining: int | None = None


class UserProfileResponse(UserOut):
    registration_date: datetime
    last_login: datetime | None = None
    subscription: SubscriptionOut | None = None
    analytics: UserAnalyticsResponse | None = None


class FeatureStat(CamelModel):
    total_usage: int
    unique_users: int


class SystemAnalyticsResponse(CamelModel):
    total_users: int
    active_users: int
    feature_stats: dict[str, FeatureStat] = Field(default_factory=dict)
    total_revenue: float
