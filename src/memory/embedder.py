"""Embedding generation via the OpenAI embeddings API."""

from typing import List, Optional

from openai import AsyncOpenAI

from src.utils.config import settings
from src.utils.logger import get_logger

log = get_logger(__name__)

EMBEDDING_DIM = 1536  # text-embedding-3-small


class Embedder:
    """Generate vector embeddings using the OpenAI embeddings API."""

    def __init__(self, model: str | None = None, api_key: str | None = None):
        self.model = model or settings.embedding_model
        self._api_key = api_key or settings.openai_api_key
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        # Built lazily: start-up must not require OPENAI_API_KEY.
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    @property
    def dimension(self) -> int:
        return EMBEDDING_DIM

    async def embed_text(self, text: str) -> List[float]:
        """Embed a single text string and return the vector."""
        resp = await self.client.embeddings.create(model=self.model, input=text)
        return resp.data[0].embedding

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Embed a batch of texts, preserving input order."""
        if not texts:
            return []
        resp = await self.client.embeddings.create(model=self.model, input=texts)
        by_index = {d.index: d.embedding for d in resp.data}
        return [by_index[i] for i in range(len(texts))]

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
