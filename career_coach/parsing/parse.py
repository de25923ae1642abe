from __future__ import annotations

import base64
import binascii
import hashlib
import logging
from io import BytesIO
from pathlib import PurePath
from typing import Callable

from docx import Document
from pypdf import PdfReader

from career_coach.pipeline.text import salvage_text

from .models import ParsedBlock, ParsedDoc

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = ("pdf", "docx", "txt")

_MIME_TYPES = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/plain": "txt",
}


def _pdf_blocks(content: bytes) -> list[ParsedBlock]:
    reader = PdfReader(BytesIO(content))
    pages = ((number, (page.extract_text() or "").strip()) for number, page in enumerate(reader.pages, start=1))
    return [ParsedBlock(page=number, text=text) for number, text in pages if text]


def _docx_blocks(content: bytes) -> list[ParsedBlock]:
    document = Document(BytesIO(content))
    return [ParsedBlock(text=p.text.strip()) for p in document.paragraphs if p.text.strip()]


def _txt_blocks(content: bytes) -> list[ParsedBlock]:
    text = content.decode("utf-8", errors="replace")
    return [ParsedBlock(text=text)] if text.strip() else []


_PARSERS: dict[str, Callable[[bytes], list[ParsedBlock]]] = {
    "pdf": _pdf_blocks,
    "docx": _docx_blocks,
    "txt": _txt_blocks,
}


def resolve_source_type(file_name: str, file_type: str | None = None) -> str:
    """Pick pdf/docx/txt from the declared type (extension or MIME), else from the file name."""
    declared = (file_type or "").strip().lower().lstrip(".")
    declared = _MIME_TYPES.get(declared, declared)
    if declared in SUPPORTED_TYPES:
        return declared
    extension = PurePath(file_name or "").suffix.lower().lstrip(".")
    if extension in SUPPORTED_TYPES:
        return extension
    raise ValueError(
        f"Unsupported file type '{declared or extension or 'unknown'}'. Supported types: .pdf, .docx, .txt"
    )


def extract_text(file_name: str, content: bytes, *, file_type: str | None = None) -> ParsedDoc:
    """Extract text from an uploaded document.

    Unreadable or empty files produce warnings rather than errors; only an
    unsupported type raises ``ValueError``.
    """
    source_type = resolve_source_type(file_name, file_type)
    warnings: list[str] = []
    try:
        blocks = _PARSERS[source_type](content)
    except Exception as exc:  # noqa: BLE001 - pypdf and python-docx raise many error types on damaged files
        blocks = []
        warnings.append(f"{source_type.upper()} parsing failed: {exc}")
    else:
        if not blocks:
            warnings.append(f"No extractable text found in {source_type.upper()}.")

    text = salvage_text("\n".join(block.text for block in blocks))
    if warnings:
        logger.info("document_parse_warnings file=%s type=%s warnings=%s", file_name, source_type, warnings)
    seed = text.encode("utf-8") if text else content or file_name.encode("utf-8")
    return ParsedDoc(
        doc_id=hashlib.sha256(seed).hexdigest()[:16],
        file_name=file_name or f"upload.{source_type}",
        source_type=source_type,
        text=text,
        blocks=blocks,
        parsing_warnings=warnings,
    )


def decode_upload(file_data: str) -> bytes:
    """Decode base64 upload data, accepting an optional ``data:...;base64,`` prefix."""
    payload = (file_data or "").strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("fileData must be base64 encoded.") from exc
