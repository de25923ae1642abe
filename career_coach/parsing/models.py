from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

SourceType = Literal["pdf", "docx", "txt"]


class ParsedBlock(BaseModel):
    """One page (PDF) or paragraph (DOCX) of extracted text."""

    page: int | None = None
    text: str


class ParsedDoc(BaseModel):
    doc_id: str
    file_name: str
    source_type: SourceType
    text: str
    blocks: list[ParsedBlock] = Field(default_factory=list)
    parsing_warnings: list[str] = Field(default_factory=list)

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())
