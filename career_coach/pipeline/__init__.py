from .analysis import (
    InterviewQuestion,
    ResumeAnalysis,
    heuristic_analysis,
    heuristic_interview_questions,
    parse_analysis,
    parse_interview_questions,
)
from .keywords import JobKeywordSet, KeywordMatch, alignment_score, extract_job_keywords, match_keywords
from .reconstruct import (
    GeneratedDocument,
    build_cover_letter,
    export_sections,
    reconstruct_resume,
    render_resume,
)
from .sections import (
    ContactBlock,
    ResumeSections,
    SectionExtraction,
    extract_contact,
    extract_sections,
    extract_sections_detailed,
)
from .text import salvage_text

__all__ = [
    "ResumeSections",
    "ContactBlock",
    "SectionExtraction",
    "extract_sections",
    "extract_sections_detailed",
    "extract_contact",
    "salvage_text",
    "JobKeywordSet",
    "KeywordMatch",
    "extract_job_keywords",
    "match_keywords",
    "alignment_score",
    "GeneratedDocument",
    "reconstruct_resume",
    "render_resume",
    "build_cover_letter",
    "export_sections",
    "ResumeAnalysis",
    "InterviewQuestion",
    "parse_analysis",
    "heuristic_analysis",
    "parse_interview_questions",
    "heuristic_interview_questions",
]
