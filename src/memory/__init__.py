"""Memory module -- Redis vector store, embeddings, search, conversation history."""

from src.memory.embedder import Embedder
from src.memory.redis_client import RedisClient
from src.memory.vector_search import VectorSearch

__all__ = ["Embedder", "RedisClient", "VectorSearch"]
