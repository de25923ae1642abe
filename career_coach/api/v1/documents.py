import logging
import re

from fastapi import APIRouter, HTTPException, Response, status

from career_coach.export.documents import (
    DOCX_MEDIA_TYPE,
    PDF_MEDIA_TYPE,
    build_docx,
    build_pdf,
    sections_from_text,
)
from career_coach.parsing.parse import decode_upload, extract_text
from career_coach.pipeline.reconstruct import export_sections, reconstruct_resume
from career_coach.pipeline.sections import ResumeSections, extract_contact
from career_coach.schemas.coach import DownloadRequest, UploadDocumentRequest, UploadDocumentResponse

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB

_FILENAME_UNSAFE = re.compile(r"[^A-Za-z0-9._ -]+")


def _safe_filename(title: str, extension: str) -> str:
    stem = _FILENAME_UNSAFE.sub("", title or "").strip().replace(" ", "_") or "Document"
    return f"{stem[:80]}.{extension}"


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _resume_blocks(content: str) -> list[tuple[str, list[str]]]:
    document = reconstruct_resume(content, ResumeSections())
    if document.source != "ai":
        return sections_from_text(content)
    contact = extract_contact(content)
    header = [contact.name, *contact.lines] if contact.name != "Your Name" or contact.lines else []
    blocks = export_sections(document)
    return [("", header), *blocks] if header else blocks


@router.post("/upload-document", response_model=UploadDocumentResponse)
def upload_document(payload: UploadDocumentRequest):
    try:
        content = decode_upload(payload.file_data)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File exceeds 10 MB limit.")

    try:
        parsed = extract_text(payload.file_name, content, file_type=payload.file_type)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if not parsed.has_text:
        logger.warning("document_upload_empty file=%s type=%s", parsed.file_name, parsed.source_type)
    else:
        logger.info(
            "document_uploaded file=%s type=%s chars=%s",
            parsed.file_name,
            parsed.source_type,
            len(parsed.text),
        )
    return UploadDocumentResponse(
        extracted_text=parsed.text,
        file_name=parsed.file_name,
        source_type=parsed.source_type,
        warnings=parsed.parsing_warnings,
    )


@router.post("/download-word")
def download_word(payload: DownloadRequest):
    title = payload.title or "Document"
    return _attachment(build_docx(title, sections_from_text(payload.content)), DOCX_MEDIA_TYPE, _safe_filename(title, "docx"))


@router.post("/download-resume-word")
def download_resume_word(payload: DownloadRequest):
    title = payload.title or "Optimized Resume"
    return _attachment(build_docx(title, _resume_blocks(payload.content)), DOCX_MEDIA_TYPE, "Optimized_Resume.docx")


@router.post("/download-resume-pdf")
def download_resume_pdf(payload: DownloadRequest):
    title = payload.title or "Optimized Resume"
    return _attachment(build_pdf(title, _resume_blocks(payload.content)), PDF_MEDIA_TYPE, "Optimized_Resume.pdf")


@router.post("/download-coverletter-word")
@router.post("/download-cover-letter-word")
def download_coverletter_word(payload: DownloadRequest):
    title = payload.title or "Cover Letter"
    return _attachment(build_docx(title, sections_from_text(payload.content)), DOCX_MEDIA_TYPE, "Cover_Letter.docx")


@router.post("/download-coverletter-pdf")
def download_coverletter_pdf(payload: DownloadRequest):
    title = payload.title or "Cover Letter"
    return _attachment(build_pdf(title, sections_from_text(payload.content)), PDF_MEDIA_TYPE, "Cover_Letter.pdf")
