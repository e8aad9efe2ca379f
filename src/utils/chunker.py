"""Document chunker -- splits extracted text into overlapping chunks for embedding."""

from bisect import bisect_right
from typing import Any, Dict, List, Sequence

from langchain_text_splitters import RecursiveCharacterTextSplitter

from src.utils.config import settings


def chunk_text(
    content: str,
    chunk_size: int | None = None,
    chunk_overlap: int | None = None,
) -> List[Dict[str, Any]]:
    """Split *content* on paragraph/sentence/word boundaries.

    Returns one dict per chunk with ``chunk_index`` (0-based, contiguous),
    ``content`` and ``start_index`` (character offset into *content*).
    """
    if not content or not content.strip():
        return []

    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size or settings.chunk_size,
        chunk_overlap=chunk_overlap if chunk_overlap is not None else settings.chunk_overlap,
        add_start_index=True,
    )
    docs = splitter.create_documents([content])
    return [
        {
            "chunk_index": idx,
            "content": doc.page_content,
            "start_index": doc.metadata.get("start_index", 0),
        }
        for idx, doc in enumerate(docs)
    ]


def page_for_offset(page_offsets: Sequence[int], offset: int) -> int:
    """Map a character offset to a 1-based page number.

    *page_offsets* holds the starting offset of every page in ascending order.
    """
    if not page_offsets:
        return 1
    return max(1, bisect_right(page_offsets, offset))
