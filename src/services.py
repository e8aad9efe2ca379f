"""Long-lived clients, built once at start-up and handed to the API."""

from dataclasses import dataclass
from typing import Any

from src.agent.graph import build_graph
from src.agent.loop import AgentLoop
from src.auth.identity import IdentityProvider
from src.ingestion.pipeline import DocumentPipeline
from src.llm.base import ChatModel
from src.memory.conversation_store import ConversationStore
from src.memory.embedder import Embedder
from src.memory.redis_client import RedisClient
from src.memory.vector_search import VectorSearch
from src.tools import ToolRegistry, build_registry
from src.utils.config import Settings, settings
from src.utils.logger import get_logger
from src.web.tavily_search import TavilySearch
from src.web.weather_api import WeatherClient

log = get_logger(__name__)


@dataclass
class Services:
    settings: Settings
    redis: RedisClient
    embedder: Embedder
    vector_search: VectorSearch
    weather: WeatherClient
    search: TavilySearch
    registry: ToolRegistry
    chat_model: ChatModel
    agent: AgentLoop
    graph: Any
    pipeline: DocumentPipeline
    conversations: ConversationStore
    identity: IdentityProvider

    async def close(self) -> None:
        await self.weather.close()
        await self.identity.close()
        await self.chat_model.close()
        await self.embedder.close()
        await self.redis.close()


def build_services(cfg: Settings = settings) -> Services:
    """Wire every client from *cfg*.  Nothing here touches the network."""
    redis_client = RedisClient(
        host=cfg.redis_host,
        port=cfg.redis_port,
        password=cfg.redis_password,
        index_name=cfg.vector_index_name,
    )
    embedder = Embedder(model=cfg.embedding_model, api_key=cfg.openai_api_key)
    vector_search = VectorSearch(redis_client, embedder)
    weather = WeatherClient(
        api_key=cfg.weather_api_key, base_url=cfg.weather_base_url, units=cfg.weather_units
    )
    search = TavilySearch(api_key=cfg.tavily_api_key)
    registry = build_registry(vector_search, weather, search)
    chat_model = ChatModel(
        model=cfg.chat_model,
        api_key=cfg.openai_api_key,
        project=cfg.openai_project_id,
        temperature=cfg.temperature,
        max_tokens=cfg.max_tokens,
    )
    agent = AgentLoop(chat_model, registry, recursion_limit=cfg.recursion_limit)
    log.info("Registered tools: %s", ", ".join(registry.names))

    return Services(
        settings=cfg,
        redis=redis_client,
        embedder=embedder,
        vector_search=vector_search,
        weather=weather,
        search=search,
        registry=registry,
        chat_model=chat_model,
        agent=agent,
        graph=build_graph(agent, universal_fallback=cfg.universal_fallback),
        pipeline=DocumentPipeline(
            embedder,
            redis_client,
            chunk_size=cfg.chunk_size,
            chunk_overlap=cfg.chunk_overlap,
            batch_size=cfg.upsert_batch_size,
        ),
        conversations=ConversationStore(
            redis_client.client,
            max_messages=cfg.history_max_messages,
            ttl_seconds=cfg.history_ttl_seconds,
        ),
        identity=IdentityProvider(cfg),
    )
