"""PDF text extraction."""

from dataclasses import dataclass
from io import BytesIO
from typing import List

from pypdf import PdfReader


@dataclass(frozen=True)
class ExtractedText:
    text: str
    page_count: int
    # Character offset where each page starts inside ``text``.
    page_offsets: List[int]


def extract_pdf_text(data: bytes) -> ExtractedText:
    """Extract the text of every page, joined with blank lines."""
    reader = PdfReader(BytesIO(data))
    parts: List[str] = []
    offsets: List[int] = []
    cursor = 0
    for page in reader.pages:
        page_text = (page.extract_text() or "").strip()
        offsets.append(cursor)
        parts.append(page_text)
        cursor += len(page_text) + 2  # "\n\n" separator
    return ExtractedText(text="\n\n".join(parts), page_count=len(reader.pages), page_offsets=offsets)
