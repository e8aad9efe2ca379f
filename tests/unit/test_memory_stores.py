"""Unit tests for conversation history and the vector search facade."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.agent.state import AI, HUMAN, Message
from src.memory.conversation_store import ConversationStore
from src.memory.records import KnowledgeRecord
from src.memory.vector_search import VectorSearch


def _redis_with_pipeline():
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[2, True, True])
    client = MagicMock()
    client.pipeline.return_value = pipe
    client.lrange = AsyncMock()
    return client, pipe


@pytest.mark.asyncio
async def test_load_decodes_history_in_order():
    client, _ = _redis_with_pipeline()
    client.lrange.return_value = [
        json.dumps({"role": HUMAN, "content": "hi"}).encode(),
        json.dumps({"role": AI, "content": "hello"}).encode(),
    ]
    store = ConversationStore(client, max_messages=10, ttl_seconds=60)

    history = await store.load("user-1", "c-1")

    client.lrange.assert_awaited_once_with("conversation:user-1:c-1", 0, -1)
    assert [(m.role, m.content) for m in history] == [(HUMAN, "hi"), (AI, "hello")]


@pytest.mark.asyncio
async def test_append_trims_and_expires():
    client, pipe = _redis_with_pipeline()
    store = ConversationStore(client, max_messages=20, ttl_seconds=3600)

    await store.append("user-1", "c-1", Message(role=HUMAN, content="q"), Message(role=AI, content="a"))

    key, *items = pipe.rpush.call_args.args
    assert key == "conversation:user-1:c-1"
    assert [json.loads(i)["content"] for i in items] == ["q", "a"]
    pipe.ltrim.assert_called_once_with("conversation:user-1:c-1", -20, -1)
    pipe.expire.assert_called_once_with("conversation:user-1:c-1", 3600)
    pipe.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_append_nothing_is_a_no_op():
    client, pipe = _redis_with_pipeline()
    await ConversationStore(client).append("user-1", "c-1")
    client.pipeline.assert_not_called()


class InMemoryLists:
    """Just enough of the redis list API for ConversationStore."""

    def __init__(self):
        self.lists = {}

    async def lrange(self, key, start, end):
        return list(self.lists.get(key, []))

    def pipeline(self):
        store = self

        class Pipe:
            def rpush(self, key, *items):
                store.lists.setdefault(key, []).extend(items)

            def ltrim(self, key, start, end):
                store.lists[key] = store.lists[key][start:]

            def expire(self, key, seconds):
                pass

            async def execute(self):
                return []

        return Pipe()


@pytest.mark.asyncio
async def test_same_conversation_id_is_private_per_user():
    store = ConversationStore(InMemoryLists(), max_messages=10, ttl_seconds=60)
    await store.append("alice", "shared-id", Message(role=HUMAN, content="my salary is 90k"))

    assert await store.load("bob", "shared-id") == []
    await store.append("bob", "shared-id", Message(role=HUMAN, content="hello"))

    alice = await store.load("alice", "shared-id")
    assert [m.content for m in alice] == ["my salary is 90k"]
    assert [m.content for m in await store.load("bob", "shared-id")] == ["hello"]


@pytest.mark.asyncio
async def test_search_embeds_then_queries():
    embedder = MagicMock()
    embedder.embed_text = AsyncMock(return_value=[0.1, 0.2])
    redis_client = MagicMock()
    redis_client.vector_search = AsyncMock(return_value=[{"id": "x"}])

    results = await VectorSearch(redis_client, embedder).search("deploy", top_k=5, filters={"source": "slack"})

    assert results == [{"id": "x"}]
    redis_client.vector_search.assert_awaited_once_with([0.1, 0.2], top_k=5, filters={"source": "slack"})


@pytest.mark.asyncio
async def test_store_message_builds_knowledge_record():
    embedder = MagicMock()
    embedder.embed_text = AsyncMock(return_value=[0.5])
    redis_client = MagicMock()
    redis_client.upsert = AsyncMock(return_value=1)

    result = await VectorSearch(redis_client, embedder).store_message(
        "PR merged", source="GitHub", channel="api", metadata={"author": "ada"}
    )

    (record,) = redis_client.upsert.await_args.args[0]
    assert isinstance(record, KnowledgeRecord)
    assert record.source == "github"
    assert record.record_id.startswith("github-api-")
    assert record.metadata == {"author": "ada"}
    assert result == {"success": True, "vectorId": record.record_id}
