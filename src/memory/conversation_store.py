"""Per-conversation message history kept in a bounded Redis list."""

import json
from typing import List

import redis.asyncio as aioredis

from src.agent.state import Message
from src.utils.config import settings

KEY_PREFIX = "conversation:"


def history_key(user_id: str, conversation_id: str) -> str:
    return f"{KEY_PREFIX}{user_id}:{conversation_id}"


class ConversationStore:
    """Stores the human/ai exchange of every request, newest last.

    Lists are keyed by owner and conversation id, so a conversation id
    reused by another user starts from an empty history.

    Only final answers are kept; tool traffic never leaves the request that
    produced it.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        max_messages: int | None = None,
        ttl_seconds: int | None = None,
    ):
        self.client = client
        self.max_messages = max_messages or settings.history_max_messages
        self.ttl_seconds = ttl_seconds or settings.history_ttl_seconds

    async def load(self, user_id: str, conversation_id: str) -> List[Message]:
        raw = await self.client.lrange(history_key(user_id, conversation_id), 0, -1)
        messages: List[Message] = []
        for item in raw:
            data = json.loads(item)
            messages.append(Message(role=data["role"], content=data["content"]))
        return messages

    async def append(self, user_id: str, conversation_id: str, *messages: Message) -> None:
        if not messages:
            return
        key = history_key(user_id, conversation_id)
        pipe = self.client.pipeline()
        pipe.rpush(key, *[json.dumps({"role": m.role, "content": m.content}) for m in messages])
        pipe.ltrim(key, -self.max_messages, -1)
        pipe.expire(key, self.ttl_seconds)
        await pipe.execute()
