"""Pydantic schemas for evidence and retrieval data.

Defines SearchItem/Answer (Q&A search results), FetchResult (best-effort
fetch outcome) and EvidenceDocument (a rendered PDF blob).
"""

import base64
import re
from pydantic import BaseModel, Field
from typing import List, Optional

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")

class Answer(BaseModel):
    body: str
    is_accepted: bool = False

class SearchItem(BaseModel):
    title: str
    link: str
    body: str
    answers: List[Answer] = []

    def accepted_answer(self) -> Optional[Answer]:
        return next((a for a in self.answers if a.is_accepted), None)

class FetchResult(BaseModel):
    url: str
    ok: bool
    status_code: Optional[int] = None
    content: bytes = b""
    content_type: str = "application/octet-stream"

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"

class EvidenceDocument(BaseModel):
    name: str
    content: bytes = Field(repr=False)
    mime_type: str = "application/pdf"

    @property
    def filename(self) -> str:
        """Name usable on disk and for uploads, always with a .pdf suffix for PDFs."""
        stem = _UNSAFE_CHARS_RE.sub("_", self.name).strip("._") or "document"
        if self.mime_type == "application/pdf" and not stem.lower().endswith(".pdf"):
            stem += ".pdf"
        return stem
