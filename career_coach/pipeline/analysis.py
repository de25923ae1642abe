from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field

from career_coach.ai.json_payload import parse_json_payload
from career_coach.core.thresholds import get_threshold

from .keywords import KeywordMatch, alignment_score, match_keywords
from .sections import extract_sections_detailed
from .text import normalize_line

_SCORE_RE = re.compile(r"SCORE:\s*(\d+)", re.IGNORECASE)
_STRENGTHS_RE = re.compile(r"STRENGTHS:\s*(.+?)(?=\n|IMPROVEMENTS:|$)", re.IGNORECASE)
_IMPROVEMENTS_RE = re.compile(r"IMPROVEMENTS:\s*(.+?)(?=\n|ANALYSIS:|$)", re.IGNORECASE)
_ANALYSIS_RE = re.compile(r"ANALYSIS:\s*(.+?)(?=\nJOB_ALIGNMENT:|JOB_ALIGNMENT:|$)", re.IGNORECASE | re.DOTALL)
_ALIGNMENT_RE = re.compile(r"JOB_ALIGNMENT:\s*(\d+)", re.IGNORECASE)
_QUESTION_RE = re.compile(
    r"^\s*(?:[*#]+\s*)?(?:Question\s*(?P<num>\d+)|(?P<num2>\d+)[.)])\s*[:.)-]?\s*(?:\*+\s*)?(?P<body>.+?)\s*$",
    re.IGNORECASE,
)
_TIP_RE = re.compile(r"\((?:Tip|Hint)\s*:\s*(?P<tip>.+?)\)\s*$", re.IGNORECASE)
_METRIC_RE = re.compile(r"\d|%|[$€£]")
_KEY_SEPARATORS = re.compile(r"[\s_-]+")


class ResumeAnalysis(BaseModel):
    score: int = Field(ge=0, le=100)
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    analysis: str = ""
    job_alignment: int = Field(ge=0, le=100)
    keywords: KeywordMatch = Field(default_factory=KeywordMatch)


class InterviewQuestion(BaseModel):
    question: str
    tip: str = ""


def _clamp(value: Any, default: int) -> int:
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return default
    return max(0, min(100, number))


def _split_items(value: Any) -> list[str]:
    if isinstance(value, list):
        return [normalize_line(str(item)) for item in value if str(item).strip()]
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return []


def _default_analysis() -> ResumeAnalysis:
    return ResumeAnalysis(
        score=_clamp(get_threshold("analysis.default_score", 75), 75),
        job_alignment=_clamp(get_threshold("analysis.default_job_alignment", 70), 70),
    )


def parse_analysis(ai_text: str | None, *, fallback: ResumeAnalysis | None = None) -> ResumeAnalysis:
    """Read the SCORE/STRENGTHS/IMPROVEMENTS/ANALYSIS/JOB_ALIGNMENT layout (or the same keys as JSON).

    Anything the model leaves out is taken from ``fallback``.
    """
    base = fallback or _default_analysis()
    text = ai_text or ""
    payload = parse_json_payload(text)
    if payload is not None:
        # "jobAlignment", "job_alignment" and "Job Alignment" all read as "jobalignment".
        lowered = {_KEY_SEPARATORS.sub("", str(key)).lower(): value for key, value in payload.items()}
        strengths = _split_items(lowered.get("strengths"))
        improvements = _split_items(lowered.get("improvements"))
        detail = lowered.get("analysis")
        return ResumeAnalysis(
            score=_clamp(lowered.get("score"), base.score),
            strengths=strengths or base.strengths,
            improvements=improvements or base.improvements,
            analysis=str(detail).strip() if isinstance(detail, str) and detail.strip() else base.analysis,
            job_alignment=_clamp(lowered.get("jobalignment"), base.job_alignment),
            keywords=base.keywords,
        )

    score = _SCORE_RE.search(text)
    strengths = _STRENGTHS_RE.search(text)
    improvements = _IMPROVEMENTS_RE.search(text)
    detail = _ANALYSIS_RE.search(text)
    alignment = _ALIGNMENT_RE.search(text)

    if detail:
        analysis_text = detail.group(1).strip()
    elif text.strip():
        analysis_text = text.strip()
    else:
        analysis_text = base.analysis

    return ResumeAnalysis(
        score=_clamp(score.group(1), base.score) if score else base.score,
        strengths=_split_items(strengths.group(1)) if strengths else base.strengths,
        improvements=_split_items(improvements.group(1)) if improvements else base.improvements,
        analysis=analysis_text,
        job_alignment=_clamp(alignment.group(1), base.job_alignment) if alignment else base.job_alignment,
        keywords=base.keywords,
    )


def heuristic_analysis(resume_text: str, job_description: str = "") -> ResumeAnalysis:
    extraction = extract_sections_detailed(resume_text)
    sections = extraction.sections
    keywords = match_keywords(resume_text, job_description)
    alignment = alignment_score(keywords, resume_text)

    structure = round(100 * len(extraction.found) / 6)
    has_metrics = any(_METRIC_RE.search(line) for line in sections.experience + sections.achievements)

    strengths: list[str] = []
    if keywords.matched:
        strengths.append(f"Covers {len(keywords.matched)} of {len(keywords.job_keywords)} job keywords")
        strengths.extend(f"Shows {term} experience relevant to the role" for term in keywords.matched[:4])
    if "summary" in extraction.found:
        strengths.append("Includes a dedicated professional summary")
    if "skills" in extraction.found and len(sections.skills) >= 5:
        strengths.append("Lists a broad technical skill set")
    if has_metrics:
        strengths.append("Quantifies achievements with concrete numbers")
    if not strengths:
        strengths.append("Provides a starting point with relevant background")

    improvements: list[str] = [f"Add evidence of {term} if you have it" for term in keywords.missing[:4]]
    for name in extraction.backfilled:
        improvements.append(f"Add a clearly labelled {name} section")
    if not has_metrics:
        improvements.append("Quantify results with metrics (%, $, time saved)")
    if not job_description.strip():
        improvements.append("Provide a job description for a targeted keyword review")
    if not improvements:
        improvements.append("Tailor the summary to the exact job title")

    score = max(0, min(100, round(0.5 * alignment + 0.3 * structure + (20 if has_metrics else 5))))
    matched_note = ", ".join(keywords.matched) if keywords.matched else "none of the recognised keywords"
    analysis = (
        f"The resume matches {matched_note} from the job description "
        f"and has {len(extraction.found)} of 6 standard sections clearly labelled. "
        + (
            f"Consider addressing the missing keywords: {', '.join(keywords.missing[:6])}. "
            if keywords.missing
            else ""
        )
        + ("Metrics are present, keep them prominent." if has_metrics else "Adding measurable outcomes would strengthen it.")
    )
    return ResumeAnalysis(
        score=score,
        strengths=strengths[:7],
        improvements=improvements[:7],
        analysis=analysis,
        job_alignment=alignment,
        keywords=keywords,
    )


def parse_interview_questions(ai_text: str | None) -> list[InterviewQuestion]:
    text = (ai_text or "").strip()
    if not text:
        return []

    questions: list[InterviewQuestion] = []
    for raw_line in text.splitlines():
        match = _QUESTION_RE.match(raw_line)
        if not match:
            continue
        body = match.group("body").strip().strip("*").strip()
        tip = ""
        tip_match = _TIP_RE.search(body)
        if tip_match:
            tip = tip_match.group("tip").strip()
            body = body[: tip_match.start()].strip()
        if body:
            questions.append(InterviewQuestion(question=body, tip=tip))

    if not questions:
        return [InterviewQuestion(question=text)]
    return questions


def heuristic_interview_questions(role: str, job_description: str = "", *, interactive: bool = True) -> list[InterviewQuestion]:
    keywords = match_keywords("", job_description).missing
    focus = keywords[0] if keywords else "the core tools of this role"
    second = keywords[1] if len(keywords) > 1 else "a technology you learned recently"
    role_name = role or "this"
    questions = [
        InterviewQuestion(
            question=f"Walk me through your background and why you are a fit for the {role_name} position.",
            tip="Keep it to two minutes and end on why this role.",
        ),
        InterviewQuestion(
            question=f"Describe a project where you used {focus}. What was your contribution?",
            tip="Use the STAR format and quantify the result.",
        ),
        InterviewQuestion(
            question="Tell me about a difficult problem you solved and how you approached it.",
            tip="Explain your reasoning, not just the outcome.",
        ),
        InterviewQuestion(
            question="Describe a time you disagreed with a teammate. How did you resolve it?",
            tip="Show empathy and focus on the shared goal.",
        ),
        InterviewQuestion(
            question="How do you prioritise when several deadlines collide?",
            tip="Mention a concrete framework or example.",
        ),
        InterviewQuestion(
            question=f"How would you get up to speed with {second} in your first month?",
            tip="Name specific resources and a learning plan.",
        ),
        InterviewQuestion(
            question="What questions do you have about our team and roadmap?",
            tip="Prepare two thoughtful questions about the team.",
        ),
    ]
    return questions if interactive else questions[:5]
