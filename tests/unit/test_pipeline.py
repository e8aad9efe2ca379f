"""Unit tests for PDF extraction and the ingestion pipeline."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.errors import IngestionError
from src.ingestion.pdf import ExtractedText, extract_pdf_text
from src.ingestion.pipeline import DocumentMetadata, DocumentPipeline

META = DocumentMetadata(
    file_id="f-1", file_name="report.pdf", user_id="user-1", uploaded_at="2024-01-01T00:00:00+00:00"
)


def _embedder():
    embedder = MagicMock()
    embedder.embed_batch = AsyncMock(side_effect=lambda texts: [[float(len(t))] for t in texts])
    return embedder


def _redis():
    redis_client = MagicMock()
    redis_client.upsert = AsyncMock(side_effect=lambda records: len(records))
    return redis_client


def _extractor(text, offsets):
    return lambda data: ExtractedText(text=text, page_count=len(offsets), page_offsets=offsets)


def test_extract_pdf_text(make_pdf):
    extracted = extract_pdf_text(make_pdf(["Hello world", "Second page"]))
    assert extracted.page_count == 2
    assert "Hello world" in extracted.text
    assert "Second page" in extracted.text
    assert extracted.page_offsets[0] == 0
    assert extracted.text[extracted.page_offsets[1]:].startswith("Second")


@pytest.mark.asyncio
async def test_ingest_real_pdf(make_pdf):
    redis_client = _redis()
    pipeline = DocumentPipeline(_embedder(), redis_client, chunk_size=1000, chunk_overlap=200, batch_size=100)
    result = await pipeline.ingest(make_pdf(["Quarterly revenue grew", "Costs were flat"]), META)

    assert result.file_id == "f-1"
    assert result.page_count == 2
    assert result.chunk_count > 0
    stored = redis_client.upsert.await_args.args[0]
    assert stored[0].record_id == "f-1-chunk-0"


@pytest.mark.asyncio
async def test_chunks_are_contiguous_and_carry_pages():
    page_one = "alpha " * 40
    text = page_one + "\n\n" + "omega " * 40
    redis_client = _redis()
    pipeline = DocumentPipeline(
        _embedder(),
        redis_client,
        chunk_size=100,
        chunk_overlap=20,
        batch_size=100,
        extractor=_extractor(text, [0, len(page_one) + 2]),
    )
    result = await pipeline.ingest(b"%PDF", META)

    chunks = redis_client.upsert.await_args.args[0]
    assert [c.chunk_index for c in chunks] == list(range(result.chunk_count))
    assert chunks[0].page_number == 1
    assert chunks[-1].page_number == 2
    assert all(c.user_id == "user-1" and c.page_count == 2 for c in chunks)
    assert all(c.embedding == [float(len(c.content))] for c in chunks)


@pytest.mark.asyncio
async def test_embedding_and_upsert_are_batched():
    text = " ".join(f"token{i}" for i in range(400))
    embedder = _embedder()
    redis_client = _redis()
    pipeline = DocumentPipeline(
        embedder, redis_client, chunk_size=50, chunk_overlap=0, batch_size=10,
        extractor=_extractor(text, [0]),
    )
    result = await pipeline.ingest(b"%PDF", META)

    assert result.chunk_count > 10
    expected_batches = (result.chunk_count + 9) // 10
    assert embedder.embed_batch.await_count == expected_batches
    assert redis_client.upsert.await_count == expected_batches
    assert all(len(call.args[0]) <= 10 for call in redis_client.upsert.await_args_list)


@pytest.mark.asyncio
async def test_unreadable_pdf_fails_in_extraction():
    pipeline = DocumentPipeline(_embedder(), _redis())
    with pytest.raises(IngestionError) as exc:
        await pipeline.ingest(b"not a pdf at all", META)
    assert exc.value.stage == "Text extraction"
    assert exc.value.error == "Failed to process PDF"


@pytest.mark.asyncio
async def test_pdf_without_text_fails_in_extraction():
    pipeline = DocumentPipeline(_embedder(), _redis(), extractor=_extractor("   ", [0]))
    with pytest.raises(IngestionError, match="Text extraction failed"):
        await pipeline.ingest(b"%PDF", META)


@pytest.mark.asyncio
async def test_embedding_failure_stops_before_upsert():
    embedder = MagicMock()
    embedder.embed_batch = AsyncMock(side_effect=RuntimeError("rate limited"))
    redis_client = _redis()
    pipeline = DocumentPipeline(embedder, redis_client, extractor=_extractor("some text", [0]))

    with pytest.raises(IngestionError) as exc:
        await pipeline.ingest(b"%PDF", META)
    assert exc.value.stage == "Embedding"
    assert "rate limited" in exc.value.message
    redis_client.upsert.assert_not_awaited()


@pytest.mark.asyncio
async def test_upsert_failure_keeps_earlier_batches():
    text = " ".join(f"token{i}" for i in range(100))
    redis_client = MagicMock()
    redis_client.upsert = AsyncMock(side_effect=[10, ConnectionError("redis gone")])
    pipeline = DocumentPipeline(
        _embedder(), redis_client, chunk_size=50, chunk_overlap=0, batch_size=10,
        extractor=_extractor(text, [0]),
    )
    with pytest.raises(IngestionError) as exc:
        await pipeline.ingest(b"%PDF", META)
    assert exc.value.stage == "Vector upsert"
    assert redis_client.upsert.await_count == 2
