"""Document ingestion: extract -> split -> embed -> upsert.

Stages run strictly in order and each must finish before the next starts.
A failure aborts the run with an ``IngestionError`` naming the stage;
batches already written to Redis stay there.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, List

from src.errors import IngestionError
from src.ingestion.pdf import ExtractedText, extract_pdf_text
from src.memory.embedder import Embedder
from src.memory.records import DocumentChunk
from src.memory.redis_client import RedisClient
from src.utils.chunker import chunk_text, page_for_offset
from src.utils.config import settings
from src.utils.logger import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class DocumentMetadata:
    file_id: str
    file_name: str
    user_id: str
    uploaded_at: str


@dataclass(frozen=True)
class IngestionResult:
    file_id: str
    page_count: int
    chunk_count: int


class DocumentPipeline:
    def __init__(
        self,
        embedder: Embedder,
        redis_client: RedisClient,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
        batch_size: int | None = None,
        extractor: Callable[[bytes], ExtractedText] = extract_pdf_text,
    ):
        self.embedder = embedder
        self.redis = redis_client
        self.chunk_size = chunk_size or settings.chunk_size
        self.chunk_overlap = settings.chunk_overlap if chunk_overlap is None else chunk_overlap
        self.batch_size = batch_size or settings.upsert_batch_size
        self.extractor = extractor

    async def ingest(self, data: bytes, meta: DocumentMetadata) -> IngestionResult:
        log.info("Starting to process PDF: %s (%s)", meta.file_name, meta.file_id)

        # 1. Extract text
        try:
            extracted = await asyncio.to_thread(self.extractor, data)
        except Exception as exc:
            log.exception("Text extraction failed for %s", meta.file_id)
            raise IngestionError("Text extraction", str(exc)) from exc
        if not extracted.text.strip():
            raise IngestionError("Text extraction", "no extractable text found in the PDF")
        log.info("PDF text extracted: %d characters, %d pages", len(extracted.text), extracted.page_count)

        # 2. Split into overlapping chunks
        try:
            pieces = await asyncio.to_thread(
                chunk_text, extracted.text, self.chunk_size, self.chunk_overlap
            )
        except Exception as exc:
            log.exception("Splitting failed for %s", meta.file_id)
            raise IngestionError("Text splitting", str(exc)) from exc
        log.info("Text split into %d chunks", len(pieces))

        # 3. Embed
        texts = [p["content"] for p in pieces]
        vectors: List[List[float]] = []
        try:
            for start in range(0, len(texts), self.batch_size):
                vectors.extend(await self.embedder.embed_batch(texts[start : start + self.batch_size]))
        except Exception as exc:
            log.exception("Embedding failed for %s", meta.file_id)
            raise IngestionError("Embedding", str(exc)) from exc
        log.info("Generated %d embeddings", len(vectors))

        chunks = [
            DocumentChunk(
                file_id=meta.file_id,
                chunk_index=piece["chunk_index"],
                content=piece["content"],
                embedding=vector,
                file_name=meta.file_name,
                user_id=meta.user_id,
                uploaded_at=meta.uploaded_at,
                page_number=page_for_offset(extracted.page_offsets, piece["start_index"]),
                page_count=extracted.page_count,
            )
            for piece, vector in zip(pieces, vectors)
        ]

        # 4. Upsert in batches
        total_batches = (len(chunks) + self.batch_size - 1) // self.batch_size
        try:
            for n, start in enumerate(range(0, len(chunks), self.batch_size), 1):
                await self.redis.upsert(chunks[start : start + self.batch_size])
                log.debug("Uploaded batch %d of %d", n, total_batches)
        except Exception as exc:
            log.exception("Vector upsert failed for %s", meta.file_id)
            raise IngestionError("Vector upsert", str(exc)) from exc

        log.info("Stored %d chunks for %s", len(chunks), meta.file_id)
        return IngestionResult(
            file_id=meta.file_id,
            page_count=extracted.page_count,
            chunk_count=len(chunks),
        )
