"""High-level vector search facade that combines embedder + Redis client."""

import time
from typing import Any, Dict, List, Optional

from src.memory.embedder import Embedder
from src.memory.records import KnowledgeRecord
from src.memory.redis_client import RedisClient
from src.utils.logger import get_logger

log = get_logger(__name__)


class VectorSearch:
    """Convenience layer: embed a query, search Redis, return ranked results."""

    def __init__(self, redis_client: RedisClient, embedder: Embedder):
        self.redis = redis_client
        self.embedder = embedder

    async def search(
        self,
        query: str,
        top_k: int = 3,
        filters: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        """Embed *query* and return the top_k nearest records matching *filters*."""
        vector = await self.embedder.embed_text(query)
        return await self.redis.vector_search(vector, top_k=top_k, filters=filters)

    async def store_message(
        self,
        text: str,
        source: str,
        channel: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Embed and store one knowledge message (Slack, Jira or GitHub)."""
        source = source.lower()
        record_id = f"{source}-{channel}-{int(time.time() * 1000)}"
        vector = await self.embedder.embed_text(text)
        await self.redis.upsert(
            [
                KnowledgeRecord(
                    record_id=record_id,
                    source=source,
                    content=text,
                    embedding=vector,
                    metadata=metadata or {},
                )
            ]
        )
        log.info("Stored %s message as %s", source, record_id)
        return {"success": True, "vectorId": record_id}
