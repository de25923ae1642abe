from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, Field

from career_coach.core.thresholds import get_threshold, get_vocabulary

JobKeywordSet = frozenset[str]


class KeywordMatch(BaseModel):
    job_keywords: list[str] = Field(default_factory=list)
    matched: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    score: int = Field(default=0, ge=0, le=100)


def _vocabulary(vocabulary: Iterable[str] | None) -> tuple[str, ...]:
    if vocabulary is None:
        return get_vocabulary()
    terms = [str(term).strip().lower() for term in vocabulary]
    return tuple(dict.fromkeys(term for term in terms if term))


def extract_job_keywords(job_description: str, vocabulary: Iterable[str] | None = None) -> JobKeywordSet:
    lowered = (job_description or "").lower()
    if not lowered.strip():
        return frozenset()
    return frozenset(term for term in _vocabulary(vocabulary) if term in lowered)


def match_keywords(
    resume_text: str,
    job_description: str,
    vocabulary: Iterable[str] | None = None,
) -> KeywordMatch:
    job_keywords = extract_job_keywords(job_description, vocabulary)
    if not job_keywords:
        return KeywordMatch(score=0)

    resume_lower = (resume_text or "").lower()
    matched = sorted(term for term in job_keywords if term in resume_lower)
    missing = sorted(job_keywords.difference(matched))
    score = round(100 * len(matched) / len(job_keywords))
    return KeywordMatch(
        job_keywords=sorted(job_keywords),
        matched=matched,
        missing=missing,
        score=max(0, min(100, score)),
    )


def alignment_score(match: KeywordMatch, resume_text: str) -> int:
    """Blend the keyword ratio with a content-length heuristic, clamped to 0-100."""
    keyword_weight = float(get_threshold("alignment.keyword_weight", 0.8))
    length_weight = float(get_threshold("alignment.length_weight", 0.2))
    target_chars = max(1, int(get_threshold("alignment.target_length_chars", 1500)))

    length_ratio = min(1.0, len((resume_text or "").strip()) / target_chars)
    total_weight = keyword_weight + length_weight
    if total_weight <= 0:
        return 0
    blended = (match.score * keyword_weight + 100 * length_ratio * length_weight) / total_weight
    return max(0, min(100, round(blended)))
