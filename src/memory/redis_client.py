"""Redis connection, vector index management, and record CRUD operations."""

import json
import re
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import redis
import redis.asyncio as aioredis
from redis.commands.search.field import (
    NumericField,
    TagField,
    TextField,
    VectorField,
)
from redis.commands.search.index_definition import IndexDefinition, IndexType
from redis.commands.search.query import Query

from src.memory.embedder import EMBEDDING_DIM
from src.memory.records import DOCUMENT_SOURCE, DocumentChunk, KnowledgeRecord
from src.utils.config import settings
from src.utils.logger import get_logger

log = get_logger(__name__)

KEY_PREFIX = "chunk:"
MAX_RESULTS = 10000

_CHUNK_FIELDS = (
    "content",
    "source",
    "file_id",
    "user_id",
    "file_name",
    "uploaded_at",
    "chunk_index",
    "page_number",
    "page_count",
    "metadata",
)

Record = Union[DocumentChunk, KnowledgeRecord]


class RedisClient:
    """Thin wrapper around redis-py (asyncio) that manages the vector index and records."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        password: str | None = None,
        index_name: str | None = None,
        client: Optional[aioredis.Redis] = None,
    ):
        self.index_name = index_name or settings.vector_index_name
        self.client = client or aioredis.Redis(
            host=host or settings.redis_host,
            port=port or settings.redis_port,
            password=password or settings.redis_password or None,
            decode_responses=True,
        )

    # -- Index management ---------------------------------------------------

    async def ensure_index(self) -> None:
        """Create the RediSearch vector index if it does not already exist."""
        try:
            await self.client.ft(self.index_name).info()
            log.info("Redis index '%s' already exists", self.index_name)
        except redis.ResponseError:
            schema = [
                TextField("content"),
                TagField("source"),
                TagField("file_id"),
                TagField("user_id"),
                TextField("file_name"),
                TextField("uploaded_at"),
                NumericField("chunk_index", sortable=True),
                NumericField("page_number"),
                NumericField("page_count"),
                VectorField(
                    "embedding",
                    "FLAT",
                    {
                        "TYPE": "FLOAT32",
                        "DIM": EMBEDDING_DIM,
                        "DISTANCE_METRIC": "COSINE",
                    },
                ),
            ]
            await self.client.ft(self.index_name).create_index(
                schema,
                definition=IndexDefinition(prefix=[KEY_PREFIX], index_type=IndexType.HASH),
            )
            log.info("Created Redis index '%s'", self.index_name)

    # -- Record storage -----------------------------------------------------

    async def upsert(self, records: Iterable[Record]) -> int:
        """Store records in a single pipeline. Returns count stored."""
        pipe = self.client.pipeline()
        count = 0
        for record in records:
            mapping = record.to_mapping()
            mapping["embedding"] = _vector_to_bytes(record.embedding)
            pipe.hset(f"{KEY_PREFIX}{record.record_id}", mapping=mapping)
            count += 1
        if count:
            await pipe.execute()
        return count

    # -- Vector search ------------------------------------------------------

    async def vector_search(
        self,
        query_vector: List[float],
        top_k: int = 3,
        filters: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        """Return top_k records matching *filters*, highest similarity first."""
        prefix = _tag_filter(filters) or "*"
        q = (
            Query(f"{prefix}=>[KNN {top_k} @embedding $vec AS score]")
            .sort_by("score")
            .return_fields(*_CHUNK_FIELDS, "score")
            .paging(0, top_k)
            .dialect(2)
        )
        raw = await self.client.ft(self.index_name).search(
            q, query_params={"vec": _vector_to_bytes(query_vector)}
        )
        results: List[Dict[str, Any]] = []
        for doc in raw.docs:
            record = _doc_to_dict(doc)
            record["similarity"] = round(1.0 - float(doc.score), 4)
            results.append(record)
        return results

    # -- Document queries ---------------------------------------------------

    async def list_document_chunks(self, user_id: str) -> List[Dict[str, Any]]:
        """Every document chunk owned by *user_id* (content omitted)."""
        q = (
            Query(_tag_filter({"source": DOCUMENT_SOURCE, "user_id": user_id}))
            .return_fields("file_id", "file_name", "uploaded_at", "chunk_index", "page_count")
            .paging(0, MAX_RESULTS)
            .dialect(2)
        )
        raw = await self.client.ft(self.index_name).search(q)
        return [_doc_to_dict(doc) for doc in raw.docs]

    async def get_document_chunks(self, file_id: str, user_id: str) -> List[Dict[str, Any]]:
        """All chunks of one document, ordered by ``chunk_index``."""
        q = (
            Query(
                _tag_filter(
                    {"source": DOCUMENT_SOURCE, "file_id": file_id, "user_id": user_id}
                )
            )
            .return_fields(*_CHUNK_FIELDS)
            .sort_by("chunk_index", asc=True)
            .paging(0, MAX_RESULTS)
            .dialect(2)
        )
        raw = await self.client.ft(self.index_name).search(q)
        chunks = [_doc_to_dict(doc) for doc in raw.docs]
        return sorted(chunks, key=lambda c: c["chunk_index"])

    async def delete_document(self, file_id: str, user_id: str) -> int:
        """Delete every chunk of one document. Returns the number of keys removed."""
        q = (
            Query(
                _tag_filter(
                    {"source": DOCUMENT_SOURCE, "file_id": file_id, "user_id": user_id}
                )
            )
            .no_content()
            .paging(0, MAX_RESULTS)
            .dialect(2)
        )
        raw = await self.client.ft(self.index_name).search(q)
        keys = [doc.id for doc in raw.docs]
        if not keys:
            return 0
        return await self.client.delete(*keys)

    # -- Utilities ----------------------------------------------------------

    async def flush_index(self) -> None:
        """Drop and recreate the index (useful in tests)."""
        try:
            await self.client.ft(self.index_name).dropindex(delete_documents=True)
        except redis.ResponseError:
            pass
        await self.ensure_index()

    async def ping(self) -> bool:
        return await self.client.ping()

    async def close(self) -> None:
        await self.client.aclose()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_TAG_SPECIAL = re.compile(r"([^A-Za-z0-9_])")


def escape_tag(value: str) -> str:
    """Escape a value for use inside a RediSearch ``{...}`` tag filter."""
    return _TAG_SPECIAL.sub(r"\\\1", value)


def _tag_filter(filters: Optional[Dict[str, str]]) -> str:
    if not filters:
        return ""
    clauses = " ".join(
        f"@{name}:{{{escape_tag(str(value))}}}" for name, value in filters.items()
    )
    return f"({clauses})"


def _doc_to_dict(doc: Any) -> Dict[str, Any]:
    """Convert a search result document into a plain dict with typed fields."""
    raw_meta = getattr(doc, "metadata", None) or "{}"
    try:
        metadata = json.loads(raw_meta)
    except json.JSONDecodeError:
        metadata = {}
    return {
        "id": doc.id.replace(KEY_PREFIX, "", 1),
        "content": getattr(doc, "content", ""),
        "source": getattr(doc, "source", ""),
        "file_id": getattr(doc, "file_id", ""),
        "user_id": getattr(doc, "user_id", ""),
        "file_name": getattr(doc, "file_name", ""),
        "uploaded_at": getattr(doc, "uploaded_at", ""),
        "chunk_index": int(getattr(doc, "chunk_index", 0) or 0),
        "page_number": int(getattr(doc, "page_number", 0) or 0),
        "page_count": int(getattr(doc, "page_count", 0) or 0),
        "metadata": metadata,
    }


def _vector_to_bytes(vector: List[float]) -> bytes:
    """Convert a Python list of floats to the bytes blob Redis expects."""
    return np.array(vector, dtype=np.float32).tobytes()
