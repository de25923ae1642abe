from __future__ import annotations

import logging
from io import BytesIO
from typing import Sequence
from xml.sax.saxutils import escape

from docx import Document
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Document generation failed. Please try again."
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PDF_MEDIA_TYPE = "application/pdf"

SectionBlocks = Sequence[tuple[str, Sequence[str]]]


def sections_from_text(content: str) -> list[tuple[str, list[str]]]:
    """One untitled block holding every non-empty line of ``content``."""
    lines = [line.rstrip() for line in (content or "").splitlines() if line.strip()]
    return [("", lines or ["No content available"])]


def _render_docx(title: str, sections: SectionBlocks) -> bytes:
    document = Document()
    document.add_heading(title or "Document", level=1)
    for heading, lines in sections:
        if heading:
            document.add_heading(heading, level=2)
        for line in lines:
            if line.startswith("• "):
                document.add_paragraph(line[2:], style="List Bullet")
            else:
                document.add_paragraph(line)
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _render_pdf(title: str, sections: SectionBlocks) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        leftMargin=0.8 * inch,
        rightMargin=0.8 * inch,
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("Title", parent=styles["Heading1"], fontSize=20, spaceAfter=12)
    section_style = ParagraphStyle("Section", parent=styles["Heading2"], fontSize=13, spaceBefore=10, spaceAfter=6)
    body_style = ParagraphStyle("Body", parent=styles["Normal"], fontSize=11, spaceAfter=4)
    bullet_style = ParagraphStyle("Bullet", parent=body_style, leftIndent=14, bulletIndent=4)

    story = [Paragraph(escape(title or "Document"), title_style), Spacer(1, 6)]
    for heading, lines in sections:
        if heading:
            story.append(Paragraph(escape(heading), section_style))
        for line in lines:
            if line.startswith("• "):
                story.append(Paragraph(escape(line[2:]), bullet_style, bulletText="•"))
            else:
                story.append(Paragraph(escape(line), body_style))
    doc.build(story)
    return buffer.getvalue()


def build_docx(title: str, sections: SectionBlocks) -> bytes:
    try:
        return _render_docx(title, sections)
    except Exception as exc:  # noqa: BLE001 - callers always receive a document
        logger.warning("docx_render_failed title=%s: %s", title, exc)
        return _render_docx(title, [("", [FALLBACK_MESSAGE])])


def build_pdf(title: str, sections: SectionBlocks) -> bytes:
    try:
        return _render_pdf(title, sections)
    except Exception as exc:  # noqa: BLE001 - callers always receive a document
        logger.warning("pdf_render_failed title=%s: %s", title, exc)
        return _render_pdf(title, [("", [FALLBACK_MESSAGE])])
