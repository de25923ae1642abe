from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, Field

from career_coach.core.thresholds import get_threshold

from .text import (
    is_bullet_like,
    is_contact_line,
    normalize_line,
    salvage_text,
    split_list_items,
    strip_bullet_prefix,
)

logger = logging.getLogger(__name__)

SectionName = Literal["summary", "skills", "experience", "projects", "education", "achievements"]

SECTION_ORDER: tuple[SectionName, ...] = (
    "summary",
    "skills",
    "experience",
    "projects",
    "education",
    "achievements",
)

_HEADER_SYNONYMS: dict[SectionName, tuple[str, ...]] = {
    "summary": (
        "professional summary",
        "executive summary",
        "career summary",
        "career objective",
        "professional profile",
        "about me",
        "objective",
        "summary",
        "profile",
    ),
    "skills": (
        "technical skills",
        "core competencies",
        "key skills",
        "skills & tools",
        "skills and tools",
        "technologies",
        "competencies",
        "skills",
    ),
    "experience": (
        "professional experience",
        "work experience",
        "employment history",
        "work history",
        "career history",
        "relevant experience",
        "experience",
        "employment",
    ),
    "projects": (
        "personal projects",
        "academic projects",
        "key projects",
        "selected projects",
        "projects",
    ),
    "education": (
        "education & training",
        "education and training",
        "academic background",
        "academic qualifications",
        "qualifications",
        "education",
    ),
    "achievements": (
        "awards & achievements",
        "awards and achievements",
        "key achievements",
        "accomplishments",
        "certifications",
        "achievements",
        "awards",
        "honors",
    ),
}


def _header_alternation(names: tuple[str, ...]) -> str:
    ordered = sorted(names, key=len, reverse=True)
    return "|".join(r"\s+".join(re.escape(word) for word in name.split()) for name in ordered)


_HEADER_PATTERNS: dict[SectionName, re.Pattern[str]] = {
    section: re.compile(
        rf"^(?:{_header_alternation(names)})\s*(?::\s*(?P<rest>.*))?$",
        re.IGNORECASE,
    )
    for section, names in _HEADER_SYNONYMS.items()
}

_NAME_FULL_RE = re.compile(r"^[A-Z][a-z]+(\s+[A-Z][a-z]+){1,2}$")
_NAME_PREFIX_RE = re.compile(r"^([A-Z][a-z]+(\s+[A-Z][a-z]+){1,2})")
_CAPITALIZED_WORD_RE = re.compile(r"^[A-Z][a-z]+")


class ResumeSections(BaseModel):
    summary: str = ""
    skills: list[str] = Field(default_factory=list)
    experience: list[str] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)
    education: str = ""
    achievements: list[str] = Field(default_factory=list)

    def missing(self) -> list[str]:
        return [name for name in SECTION_ORDER if not getattr(self, name)]


class ContactBlock(BaseModel):
    name: str = "Your Name"
    lines: list[str] = Field(default_factory=list)


class SectionExtraction(BaseModel):
    sections: ResumeSections
    found: list[str] = Field(default_factory=list)
    backfilled: list[str] = Field(default_factory=list)
    used_contact_fallback: bool = False


@dataclass
class TaggedSections:
    buckets: dict[str, list[str]] = field(default_factory=lambda: {name: [] for name in SECTION_ORDER})
    headers_found: list[str] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SectionThresholds:
    min_line_length: int = 3
    backfill_chars: int = 500
    min_salvage_run: int = 3
    contact_scan_lines: int = 10

    @classmethod
    def from_config(cls) -> "SectionThresholds":
        return cls(
            min_line_length=int(get_threshold("sections.min_line_length", 3)),
            backfill_chars=int(get_threshold("sections.backfill_chars", 500)),
            min_salvage_run=int(get_threshold("sections.min_salvage_run", 3)),
            contact_scan_lines=int(get_threshold("sections.contact_scan_lines", 10)),
        )


def match_header(line: str) -> tuple[SectionName, str] | None:
    """Return the section a header line opens, plus any inline remainder."""
    stripped = normalize_line(line)
    if not stripped or len(stripped) > 80:
        return None
    # "**Skills**" is markdown emphasis, "* Skills" is a list item.
    if is_bullet_like(stripped) and not stripped.startswith("**"):
        return None
    candidate = stripped.strip("#*_= ")
    for section in SECTION_ORDER:
        match = _HEADER_PATTERNS[section].match(candidate)
        if match:
            return section, (match.group("rest") or "").strip()
    return None


def tag_sections(text: str, *, min_line_length: int = 3) -> TaggedSections:
    """Walk lines as a state machine: headers switch state, other lines feed the current bucket."""
    tagged = TaggedSections()
    state: SectionName | None = None
    for raw_line in text.splitlines():
        line = normalize_line(raw_line)
        if not line:
            continue
        tagged.lines.append(line)
        header = match_header(line)
        if header is not None:
            state, remainder = header
            tagged.headers_found.append(state)
            if remainder:
                tagged.buckets[state].append(remainder)
            continue
        if state is None or len(line) < min_line_length:
            continue
        tagged.buckets[state].append(line)
    return tagged


def _contact_anchored_summary(lines: list[str], min_line_length: int) -> list[str]:
    for index, line in enumerate(lines):
        if "@" in line or "|" in line:
            return [item for item in lines[index + 1 :] if len(item) >= min_line_length]
    return []


def _as_list(lines: list[str], *, split_items: bool = False) -> list[str]:
    items: list[str] = []
    for line in lines:
        if split_items:
            items.extend(split_list_items(line))
            continue
        cleaned = strip_bullet_prefix(line)
        if cleaned:
            items.append(cleaned)
    return items


def _as_text(lines: list[str], joiner: str) -> str:
    cleaned = [strip_bullet_prefix(line) for line in lines]
    return joiner.join(item for item in cleaned if item).strip()


def sections_from_buckets(buckets: dict[str, list[str]]) -> ResumeSections:
    return ResumeSections(
        summary=_as_text(buckets["summary"], " "),
        skills=_as_list(buckets["skills"], split_items=True),
        experience=_as_list(buckets["experience"]),
        projects=_as_list(buckets["projects"]),
        education=_as_text(buckets["education"], "\n"),
        achievements=_as_list(buckets["achievements"]),
    )


def _backfill_excerpt(raw: str, cleaned: str, limit: int) -> str:
    excerpt = cleaned.strip()[:limit].strip()
    if excerpt:
        return excerpt
    excerpt = raw.strip()[:limit]
    return excerpt or raw[:limit]


def extract_sections_detailed(raw: str, *, thresholds: SectionThresholds | None = None) -> SectionExtraction:
    cfg = thresholds or SectionThresholds.from_config()
    raw = raw or ""
    cleaned = salvage_text(raw, min_run=cfg.min_salvage_run)
    tagged = tag_sections(cleaned, min_line_length=cfg.min_line_length)

    used_contact_fallback = False
    if not tagged.headers_found:
        summary_lines = _contact_anchored_summary(tagged.lines, cfg.min_line_length)
        if summary_lines:
            tagged.buckets["summary"] = summary_lines
            used_contact_fallback = True

    sections = sections_from_buckets(tagged.buckets)
    found = [name for name in SECTION_ORDER if getattr(sections, name)]

    backfilled: list[str] = []
    excerpt = _backfill_excerpt(raw, cleaned, cfg.backfill_chars)
    if excerpt:
        for name in sections.missing():
            value: str | list[str] = [excerpt] if isinstance(getattr(sections, name), list) else excerpt
            setattr(sections, name, value)
            backfilled.append(name)

    logger.debug(
        "sections_extracted found=%s backfilled=%s contact_fallback=%s",
        found,
        backfilled,
        used_contact_fallback,
    )
    return SectionExtraction(
        sections=sections,
        found=found,
        backfilled=backfilled,
        used_contact_fallback=used_contact_fallback,
    )


def extract_sections(raw: str, *, thresholds: SectionThresholds | None = None) -> ResumeSections:
    return extract_sections_detailed(raw, thresholds=thresholds).sections


def _extract_name(first_line: str) -> str | None:
    if match_header(first_line) is not None or is_contact_line(first_line):
        return None
    if _NAME_FULL_RE.match(first_line):
        return first_line
    prefix = _NAME_PREFIX_RE.match(first_line)
    if prefix:
        return prefix.group(1)
    words = [word for word in first_line.split() if _CAPITALIZED_WORD_RE.match(word)]
    if len(words) >= 2:
        return " ".join(words[:3])
    return None


def extract_contact(raw: str, *, thresholds: SectionThresholds | None = None) -> ContactBlock:
    cfg = thresholds or SectionThresholds.from_config()
    lines = [normalize_line(line) for line in salvage_text(raw or "").splitlines()]
    lines = [line for line in lines if line]
    if not lines:
        return ContactBlock()

    name = _extract_name(lines[0]) or "Your Name"
    contact_lines: list[str] = []
    for line in lines[: cfg.contact_scan_lines]:
        if line == name or match_header(line) is not None:
            continue
        if is_contact_line(line):
            contact_lines.append(line)
    return ContactBlock(name=name, lines=contact_lines)
