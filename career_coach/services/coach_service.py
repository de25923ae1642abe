from __future__ import annotations

import logging
from typing import Callable

from career_coach.ai.factory import get_completion_client
from career_coach.ai.types import CompletionClient, CompletionError, CompletionTimeout
from career_coach.core.errors import AccessDeniedError, CoachError, InvalidRequestError, ResumeTooShortError
from career_coach.core.store import CoachStore
from career_coach.core.thresholds import get_threshold
from career_coach.pipeline.analysis import (
    InterviewQuestion,
    heuristic_analysis,
    heuristic_interview_questions,
    parse_analysis,
    parse_interview_questions,
)
from career_coach.pipeline.keywords import alignment_score
from career_coach.pipeline.reconstruct import build_cover_letter, reconstruct_resume
from career_coach.pipeline.sections import extract_contact, extract_sections
from career_coach.schemas.coach import (
    CareerDevelopmentRequest,
    CareerPlanRequest,
    CareerPlanResponse,
    ChatRequest,
    ChatResponse,
    CoverLetterResponse,
    InterviewPrepRequest,
    InterviewPrepResponse,
    InterviewQuestionOut,
    JobAnalyticsRequest,
    JobSearchRequest,
    JobSearchResponse,
    KeywordSummary,
    OptimizedResumeResponse,
    ResumeAnalysisResponse,
    ResumeAndCoverLetterResponse,
    ResumeRequest,
)
from career_coach.services import market, plans

logger = logging.getLogger(__name__)

ClientProvider = Callable[[], CompletionClient]

CHAT_MEMORY_TURNS = 3
_CONTEXT_CHARS = 1500

_CHAT_SYSTEM = (
    "You are an AI Career Coach. Provide helpful, concise career advice. "
    "Keep responses under 300 tokens for general chat."
)
_ANALYSIS_SYSTEM = (
    "You are a professional resume reviewer. Provide structured, actionable feedback "
    "with specific scores and clear categories."
)
_COVER_LETTER_SYSTEM = "You are a professional cover letter writer. Create compelling, personalized cover letters."
_INTERVIEW_SYSTEM = "You are an interview preparation expert. Provide practical interview questions and guidance."
_PLAN_SYSTEM = "You are a career development specialist. Create actionable career transition plans."
_DEVELOPMENT_SYSTEM = "You are a career development specialist. Create actionable plans with clear milestones."
_OPTIMIZE_SYSTEM = "You are a professional resume writer. Optimize resumes for specific job descriptions."

_ANALYSIS_PROMPT = """Analyze this resume against the job description and provide a comprehensive evaluation.

Resume to analyze:
{resume}

Job Description:
{job_description}

Give specific examples from the resume, keyword optimization suggestions, achievement
quantification tips and formatting feedback.

Format your response exactly as:
SCORE: [number]/100
STRENGTHS: [strength1], [strength2], [strength3], [strength4], [strength5]
IMPROVEMENTS: [improvement1], [improvement2], [improvement3], [improvement4], [improvement5]
ANALYSIS: [detailed analysis with specific, actionable recommendations]
JOB_ALIGNMENT: [alignment score 1-100]"""

_OPTIMIZE_PROMPT = """Create a professional, ATS-friendly resume by optimizing the resume below for the job description.

Requirements:
1. Use ONLY the facts from the original resume; do not invent employers, dates or degrees.
2. Write a single focused professional summary aligned with the job.
3. Use these section headers, each on its own line: PROFESSIONAL SUMMARY, TECHNICAL SKILLS,
   PROFESSIONAL EXPERIENCE, PROJECTS, EDUCATION, ACHIEVEMENTS.
4. Use one bullet per line for skills, experience, projects and achievements.

Resume:
{resume}

Target Job:
{job_description}"""

_INTERACTIVE_PROMPT = """Generate 7 realistic interview questions for a {role} position.

Job Description: {job_description}

Cover technical skills, problem solving, collaboration, leadership and industry knowledge.
For each question, provide a brief tip in parentheses. Format as:
Question 1: [Question text] (Tip: [brief tip])
Question 2: [Question text] (Tip: [brief tip])"""

_STANDARD_PROMPT = """Generate 5 common interview questions for a {role} position, along with sample answers and tips.

Job Description: {job_description}

Format each as:
Question 1: [Question text] (Tip: [sample answer outline])"""


def _truncate(text: str, limit: int = _CONTEXT_CHARS) -> str:
    text = (text or "").strip()
    return text if len(text) <= limit else text[:limit].rstrip() + "..."


def _fallback_note(feature: str, exc: CompletionError) -> str:
    if isinstance(exc, CompletionTimeout):
        return f"{feature} generated with fallback due to timeout"
    return f"{feature} generated with fallback because the AI service is unavailable"


def validate_resume(resume: str) -> str:
    text = (resume or "").strip()
    min_chars = int(get_threshold("validation.min_resume_chars", 50))
    if len(text) < min_chars:
        raise ResumeTooShortError(f"Resume text must be at least {min_chars} characters long.")
    return text


def ensure_access(store: CoachStore, user_id: str, feature: str) -> plans.AccessDecision:
    decision = plans.check_access(store, user_id, feature)
    if not decision.access:
        logger.info("coach_access_denied user_id=%s feature=%s", user_id, feature)
        raise AccessDeniedError(
            decision.message,
            trial_expired=decision.trial_expired,
            days_remaining=decision.days_remaining,
        )
    return decision


class CoachService:
    """Feature orchestration: access check, AI call, local fallback, usage accounting."""

    def __init__(self, store: CoachStore, client_provider: ClientProvider | None = None):
        self._store = store
        self._client_provider = client_provider or get_completion_client
        self._client: CompletionClient | None = None

    def _complete(self, feature: str, *, system_prompt: str, user_prompt: str, max_output_tokens: int) -> str:
        try:
            if self._client is None:
                self._client = self._client_provider()
            return self._client.complete(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                max_output_tokens=max_output_tokens,
            )
        except CompletionError as exc:
            logger.warning("coach_llm_failed feature=%s code=%s: %s", feature, exc.code, exc)
            raise

    def _record(self, user_id: str, feature: str) -> dict[str, int]:
        plans.record_usage(self._store, user_id, feature)
        return plans.current_usage(self._store, user_id)

    def chat(self, payload: ChatRequest, user_id: str) -> ChatResponse:
        ensure_access(self._store, user_id, "chat")
        message = payload.message.strip()
        if not message:
            raise InvalidRequestError("Message is required.")

        memory = self._store.recent_chat(user_id, limit=CHAT_MEMORY_TURNS)
        context = self._store.get_context(user_id)
        prompt_parts: list[str] = []
        if memory:
            turns = " | ".join(f"{turn['role']}: {turn['content']}" for turn in memory)
            prompt_parts.append(f"Previous conversation context: {turns}.")
        if context.get("resume"):
            prompt_parts.append(f"User's resume context: {_truncate(context['resume'])}.")
        if context.get("targetRole"):
            prompt_parts.append(f"Target role: {_truncate(context['targetRole'], 300)}.")
        prompt_parts.append(message)

        try:
            reply = self._complete(
                "chat",
                system_prompt=_CHAT_SYSTEM,
                user_prompt=" ".join(prompt_parts),
                max_output_tokens=300,
            )
        except CompletionError as exc:
            raise CoachError("The AI coach is temporarily unavailable. Please try again.", status_code=503, code=exc.code) from exc

        self._store.append_chat(user_id, "user", message)
        self._store.append_chat(user_id, "assistant", reply)
        return ChatResponse(response=reply, usage=self._record(user_id, "chat"))

    def analyze_resume(self, payload: ResumeRequest, user_id: str) -> ResumeAnalysisResponse:
        ensure_access(self._store, user_id, "resumeAnalysis")
        resume = validate_resume(payload.resume)
        job_description = payload.job_description.strip()
        self._store.update_context(user_id, resume=resume, jobDescription=job_description or None)

        heuristic = heuristic_analysis(resume, job_description)
        note: str | None = None
        try:
            ai_text = self._complete(
                "resumeAnalysis",
                system_prompt=_ANALYSIS_SYSTEM,
                user_prompt=_ANALYSIS_PROMPT.format(
                    resume=resume,
                    job_description=job_description or "No specific job description provided",
                ),
                max_output_tokens=3000,
            )
            result = parse_analysis(ai_text, fallback=heuristic)
        except CompletionError as exc:
            result = heuristic
            note = _fallback_note("Analysis", exc)

        keywords = heuristic.keywords
        return ResumeAnalysisResponse(
            analysis=result.analysis,
            score=result.score,
            strengths=result.strengths,
            improvements=result.improvements,
            job_alignment=result.job_alignment,
            keywords=KeywordSummary(
                job_keywords=keywords.job_keywords,
                matched_keywords=keywords.matched,
                missing_keywords=keywords.missing,
                keyword_score=keywords.score,
                alignment_score=alignment_score(keywords, resume),
            ),
            usage=self._record(user_id, "resumeAnalysis"),
            note=note,
        )

    def cover_letter(self, payload: ResumeRequest, user_id: str) -> CoverLetterResponse:
        ensure_access(self._store, user_id, "coverLetter")
        resume = validate_resume(payload.resume)
        job_description = payload.job_description.strip()

        note: str | None = None
        try:
            letter = self._complete(
                "coverLetter",
                system_prompt=_COVER_LETTER_SYSTEM,
                user_prompt=(
                    "Generate a professional cover letter based on this resume for the following job description:"
                    f"\n\nResume:\n{resume}\n\nJob Description:\n{job_description}"
                ),
                max_output_tokens=3000,
            )
        except CompletionError as exc:
            letter = build_cover_letter(
                extract_sections(resume),
                job_description,
                contact=extract_contact(resume),
                resume_text=resume,
            )
            note = _fallback_note("Cover letter", exc)

        return CoverLetterResponse(cover_letter=letter, usage=self._record(user_id, "coverLetter"), note=note)

    def interview_prep(self, payload: InterviewPrepRequest, user_id: str) -> InterviewPrepResponse:
        role = (payload.role or "").strip()
        job_description = (payload.job_description or "").strip()
        if not role and not job_description:
            raise InvalidRequestError("Please provide either a role or job description")
        if not role:
            role = f"{job_description[:60]} role"

        ensure_access(self._store, user_id, "interviewPrep")
        interactive = payload.type == "interactive"
        template = _INTERACTIVE_PROMPT if interactive else _STANDARD_PROMPT

        note: str | None = None
        try:
            raw_text = self._complete(
                "interviewPrep",
                system_prompt=_INTERVIEW_SYSTEM,
                user_prompt=template.format(role=role, job_description=job_description or role),
                max_output_tokens=2000,
            )
            questions = parse_interview_questions(raw_text)
        except CompletionError as exc:
            questions = heuristic_interview_questions(role, job_description, interactive=interactive)
            raw_text = _render_questions(questions)
            note = _fallback_note("Interview questions", exc)

        return InterviewPrepResponse(
            role=role,
            questions=[InterviewQuestionOut(question=item.question, tip=item.tip) for item in questions],
            raw_text=raw_text,
            usage=self._record(user_id, "interviewPrep"),
            note=note,
        )

    def career_plan(self, payload: CareerPlanRequest, user_id: str) -> CareerPlanResponse:
        current_role = (payload.current_role or "").strip()
        target_role = (payload.target_role or "").strip()
        experience = str(payload.experience).strip() if payload.experience is not None else ""
        if not current_role or not target_role or not experience:
            raise InvalidRequestError(
                "Missing required parameters: currentRole, targetRole, and experience are required"
            )

        ensure_access(self._store, user_id, "careerPlanning")
        self._store.update_context(user_id, targetRole=target_role)
        try:
            plan = self._complete(
                "careerPlanning",
                system_prompt=_PLAN_SYSTEM,
                user_prompt=(
                    f"Create a career development plan for someone transitioning from {current_role} to "
                    f"{target_role} with {experience} years of experience. "
                    "Include specific steps, skills to learn, and timeline."
                ),
                max_output_tokens=800,
            )
        except CompletionError as exc:
            raise CoachError("Career planning is temporarily unavailable. Please try again.", status_code=503, code=exc.code) from exc

        return CareerPlanResponse(plan=plan, usage=self._record(user_id, "careerPlanning"))

    def career_development(self, payload: CareerDevelopmentRequest, user_id: str) -> CareerPlanResponse:
        goals = payload.goals.strip()
        skills = payload.current_skills.strip()
        if not goals and not skills:
            raise InvalidRequestError("Please provide your goals or current skills")

        ensure_access(self._store, user_id, "careerPlanning")
        try:
            plan = self._complete(
                "careerPlanning",
                system_prompt=_DEVELOPMENT_SYSTEM,
                user_prompt=(
                    "Create a concise, actionable 90-day career development plan based on these goals and "
                    f"current skills.\n\nGoals:\n{goals}\n\nCurrent skills:\n{skills}\n\n"
                    "Structure the plan into Weekly Milestones, Skills to Learn, Projects to Build, "
                    "and Measurable Outcomes."
                ),
                max_output_tokens=800,
            )
        except CompletionError as exc:
            raise CoachError("Career planning is temporarily unavailable. Please try again.", status_code=503, code=exc.code) from exc

        return CareerPlanResponse(plan=plan, usage=self._record(user_id, "careerPlanning"))

    def optimize_resume(self, payload: ResumeRequest, user_id: str) -> OptimizedResumeResponse:
        ensure_access(self._store, user_id, "resumeAnalysis")
        resume = validate_resume(payload.resume)
        job_description = payload.job_description.strip()
        self._store.update_context(user_id, targetRole=job_description or None)

        fallback_sections = extract_sections(resume)
        contact = extract_contact(resume)
        note: str | None = None
        try:
            ai_text = self._complete(
                "resumeAnalysis",
                system_prompt=_OPTIMIZE_SYSTEM,
                user_prompt=_OPTIMIZE_PROMPT.format(resume=resume, job_description=job_description),
                max_output_tokens=4000,
            )
        except CompletionError as exc:
            ai_text = None
            note = _fallback_note("Resume", exc)

        document = reconstruct_resume(ai_text, fallback_sections, contact=contact)
        return OptimizedResumeResponse(
            optimized_resume=document.raw_text,
            sections=document.sections,
            source=document.source,
            usage=self._record(user_id, "resumeAnalysis"),
            note=note,
        )

    def generate_resume_and_cover_letter(self, payload: ResumeRequest, user_id: str) -> ResumeAndCoverLetterResponse:
        ensure_access(self._store, user_id, "coverLetter")
        resume = validate_resume(payload.resume)
        job_description = payload.job_description.strip()

        fallback_sections = extract_sections(resume)
        contact = extract_contact(resume)
        note: str | None = None
        try:
            ai_resume = self._complete(
                "coverLetter",
                system_prompt=_OPTIMIZE_SYSTEM,
                user_prompt=_OPTIMIZE_PROMPT.format(resume=resume, job_description=job_description),
                max_output_tokens=4000,
            )
            letter = self._complete(
                "coverLetter",
                system_prompt=_COVER_LETTER_SYSTEM,
                user_prompt=(
                    "Create a cover letter for this resume and job. Be concise and specific:"
                    f"\n\nResume: {resume}\n\nJob: {job_description}"
                ),
                max_output_tokens=3000,
            )
            document = reconstruct_resume(ai_resume, fallback_sections, contact=contact)
        except CompletionError as exc:
            document = reconstruct_resume(None, fallback_sections, contact=contact)
            letter = build_cover_letter(fallback_sections, job_description, contact=contact, resume_text=resume)
            note = _fallback_note("Resume and cover letter", exc)

        return ResumeAndCoverLetterResponse(
            optimized_resume=document.raw_text,
            cover_letter=letter,
            sections=document.sections,
            source=document.source,
            usage=self._record(user_id, "coverLetter"),
            note=note,
        )

    def job_search(self, payload: JobSearchRequest, user_id: str) -> JobSearchResponse:
        ensure_access(self._store, user_id, "jobSearch")
        job_title = payload.job_title or payload.query
        jobs = market.search_jobs(
            job_title=job_title,
            location=payload.location,
            job_type=payload.job_type,
            experience_level=payload.experience_level,
        )
        self._record(user_id, "jobSearch")
        return JobSearchResponse(
            jobs=jobs,
            total_jobs=len(jobs),
            search_criteria={
                "jobTitle": job_title,
                "location": payload.location,
                "jobType": payload.job_type,
                "experienceLevel": payload.experience_level,
                "salaryRange": payload.salary_range,
            },
        )

    def job_analytics(self, payload: JobAnalyticsRequest, user_id: str) -> dict:
        ensure_access(self._store, user_id, "jobAnalytics")
        insights = market.market_insights(payload.query)
        self._record(user_id, "jobAnalytics")
        return insights


def _render_questions(questions: list[InterviewQuestion]) -> str:
    lines = []
    for index, item in enumerate(questions, start=1):
        tip = f" (Tip: {item.tip})" if item.tip else ""
        lines.append(f"Question {index}: {item.question}{tip}")
    return "\n".join(lines)
