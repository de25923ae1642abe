from __future__ import annotations

import logging
import re
from typing import Any, Literal

from pydantic import BaseModel

from career_coach.ai.json_payload import parse_json_payload

from .keywords import extract_job_keywords
from .sections import (
    SECTION_ORDER,
    ContactBlock,
    ResumeSections,
    extract_contact,
    match_header,
    sections_from_buckets,
    tag_sections,
)
from .text import find_years_of_experience, normalize_line

logger = logging.getLogger(__name__)

SECTION_TITLES: dict[str, str] = {
    "summary": "PROFESSIONAL SUMMARY",
    "skills": "TECHNICAL SKILLS",
    "experience": "PROFESSIONAL EXPERIENCE",
    "projects": "PROJECTS",
    "education": "EDUCATION",
    "achievements": "ACHIEVEMENTS",
}

_AI_TEXT_KEYS = ("optimized_resume", "optimizedResume", "resume", "content", "text")
_ROLE_LINE_RE = re.compile(r"\b(19|20)\d{2}\b")
_JOB_TITLE_RE = re.compile(
    r"(?:hiring|seeking|looking for|join us as|position of|role of)\s+(?:an?\s+|the\s+)?"
    r"(?P<title>[A-Za-z][A-Za-z /+.#-]{2,60}?)(?=\s+(?:to|who|with|at|in|for)\b|[.,;:\n]|$)",
    re.IGNORECASE,
)


class GeneratedDocument(BaseModel):
    raw_text: str
    sections: ResumeSections
    source: Literal["ai", "fallback"] = "fallback"


def _unwrap_ai_text(ai_output: Any) -> str:
    if ai_output is None:
        return ""
    if isinstance(ai_output, dict):
        payload: dict[str, Any] | None = ai_output
    else:
        text = str(ai_output)
        payload = parse_json_payload(text) if text.lstrip().startswith(("{", "```")) else None
        if payload is None:
            return text
    for key in _AI_TEXT_KEYS:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def _safe_line(line: str) -> str:
    # Body lines that read like headers would re-open a section on the next parse.
    return f"• {line}" if match_header(line) is not None else line


def render_resume(sections: ResumeSections, contact: ContactBlock | None = None) -> str:
    contact = contact or ContactBlock()
    parts: list[str] = [contact.name]
    if contact.lines:
        parts.append(" | ".join(normalize_line(line) for line in contact.lines))
    parts.append("")

    for name in SECTION_ORDER:
        value = getattr(sections, name)
        if not value:
            continue
        parts.append(SECTION_TITLES[name])
        if name == "summary":
            parts.append(_safe_line(normalize_line(value)))
        elif name == "education":
            parts.extend(_safe_line(normalize_line(line)) for line in value.splitlines() if line.strip())
        else:
            parts.extend(f"• {normalize_line(item)}" for item in value if item.strip())
        parts.append("")
    return "\n".join(parts).strip() + "\n"


def reconstruct_resume(
    ai_output: Any,
    fallback_sections: ResumeSections,
    *,
    contact: ContactBlock | None = None,
) -> GeneratedDocument:
    """Rebuild a resume document from AI output, falling back to the input sections.

    Fields the AI text does not provide are taken from ``fallback_sections``,
    so the result is never blank. This function does not raise.
    """
    try:
        text = _unwrap_ai_text(ai_output)
        tagged = tag_sections(text) if text.strip() else None
    except Exception:  # noqa: BLE001 - the caller always gets a document
        logger.warning("reconstruct_parse_failed", exc_info=True)
        tagged = None
        text = ""

    if tagged is None or not tagged.headers_found:
        logger.info("reconstruct_fallback reason=%s", "empty_output" if not text.strip() else "no_sections")
        return GeneratedDocument(
            raw_text=render_resume(fallback_sections, contact),
            sections=fallback_sections.model_copy(deep=True),
            source="fallback",
        )

    parsed = sections_from_buckets(tagged.buckets)
    merged = fallback_sections.model_copy(deep=True)
    for name in SECTION_ORDER:
        value = getattr(parsed, name)
        if value:
            setattr(merged, name, value)

    if contact is None:
        ai_contact = extract_contact(text)
        contact = ai_contact if ai_contact.lines or ai_contact.name != "Your Name" else None

    return GeneratedDocument(raw_text=render_resume(merged, contact), sections=merged, source="ai")


def _job_title_hint(job_description: str) -> str:
    text = normalize_line(job_description or "")
    match = _JOB_TITLE_RE.search(text)
    if match:
        return match.group("title").strip()
    words = text.split()[:3]
    return " ".join(words) if words else "advertised"


def _recent_role(sections: ResumeSections) -> tuple[str, str]:
    for line in sections.experience:
        if "," in line and _ROLE_LINE_RE.search(line):
            parts = [part.strip() for part in line.split(",")]
            return parts[0], parts[1]
    return "", ""


def build_cover_letter(
    sections: ResumeSections,
    job_description: str,
    *,
    contact: ContactBlock | None = None,
    resume_text: str = "",
) -> str:
    contact = contact or ContactBlock()
    name = contact.name
    company, current_role = _recent_role(sections)
    key_skills = [skill for skill in sections.skills if 1 < len(skill) < 100][:3]
    years = find_years_of_experience(resume_text or sections.summary) or "3+"
    job_title = _job_title_hint(job_description)
    job_terms = sorted(extract_job_keywords(job_description))
    aligned = [term for term in job_terms if term in " ".join(sections.skills + sections.experience).lower()]

    skills_phrase = (
        f"leveraged {' and '.join(key_skills[:2])} to drive business outcomes"
        if key_skills
        else "contributed to various high-impact projects"
    )
    expertise = ", ".join(key_skills) if key_skills else "relevant technologies and methodologies"
    alignment_line = (
        f" In particular, my background in {', '.join(aligned[:4])} maps directly to what you are looking for."
        if aligned
        else ""
    )
    contact_block = "\n".join(contact.lines) if contact.lines else "[Your Email]\n[Your Phone]"

    return (
        f"{name}\n{contact_block}\n\n"
        "Dear Hiring Manager,\n\n"
        f"I am writing to express my strong interest in the {job_title} position at your organization. "
        f"With {years} years of progressive experience in {current_role or 'the field'} and a proven track "
        "record of delivering results, I am excited about the opportunity to contribute to your team.\n\n"
        f"In my recent role{f' at {company}' if company else ''}, I have {skills_phrase}. "
        f"My expertise in {expertise} aligns with the requirements outlined in your job posting.{alignment_line}\n\n"
        f"What excites me most about this opportunity is the chance to apply my skills as a {job_title.lower()} "
        "while contributing to your organization's continued growth. I am confident that my analytical mindset, "
        "technical proficiency, and collaborative approach would make me a valuable addition to your team.\n\n"
        "Thank you for considering my application. I look forward to discussing how my experience can support "
        "your objectives.\n\n"
        f"Best regards,\n{name}\n"
    )


def export_sections(document: GeneratedDocument) -> list[tuple[str, list[str]]]:
    blocks: list[tuple[str, list[str]]] = []
    for name in SECTION_ORDER:
        value = getattr(document.sections, name)
        if isinstance(value, str):
            lines = [line for line in value.splitlines() if line.strip()]
        else:
            lines = [f"• {item}" for item in value if item.strip()]
        if lines:
            blocks.append((SECTION_TITLES[name], lines))
    return blocks
