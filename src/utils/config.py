"""Configuration management -- reads from environment with sensible defaults."""

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _csv(name: str, default: str = "") -> List[str]:
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]


@dataclass(frozen=True)
class Settings:
    """Centralised settings read once from env vars."""

    # --- Server ------------------------------------------------------------
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "3001")))
    frontend_url: str = field(
        default_factory=lambda: os.getenv("FRONTEND_URL", "http://localhost:3000")
    )
    allowed_origins: List[str] = field(
        default_factory=lambda: _csv("ALLOWED_ORIGINS")
        or [os.getenv("FRONTEND_URL", "http://localhost:3000")]
    )

    # --- OpenAI -----------------------------------------------------------
    openai_api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    openai_project_id: str = field(default_factory=lambda: os.getenv("OPENAI_PROJECT_ID", ""))
    chat_model: str = field(
        default_factory=lambda: os.getenv("OPENAI_CHAT_MODEL", "gpt-4.1-mini")
    )
    embedding_model: str = field(
        default_factory=lambda: os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")
    )
    temperature: float = field(
        default_factory=lambda: float(os.getenv("OPENAI_TEMPERATURE", "0.1"))
    )
    max_tokens: int = field(default_factory=lambda: int(os.getenv("OPENAI_MAX_TOKENS", "1000")))

    # --- Redis -------------------------------------------------------------
    redis_host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    redis_port: int = field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    redis_password: str = field(default_factory=lambda: os.getenv("REDIS_PASSWORD", ""))
    vector_index_name: str = field(
        default_factory=lambda: os.getenv("VECTOR_INDEX_NAME", "knowledge_base")
    )

    # --- Tavily ------------------------------------------------------------
    tavily_api_key: str = field(default_factory=lambda: os.getenv("TAVILY_API_KEY", ""))

    # --- Weather -----------------------------------------------------------
    weather_api_key: str = field(default_factory=lambda: os.getenv("WEATHER_API_KEY", ""))
    weather_base_url: str = field(
        default_factory=lambda: os.getenv(
            "WEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5"
        )
    )
    weather_units: str = field(default_factory=lambda: os.getenv("WEATHER_UNITS", "metric"))

    # --- Identity provider (Auth0) -----------------------------------------
    auth0_domain: str = field(default_factory=lambda: os.getenv("AUTH0_DOMAIN", ""))
    auth0_client_id: str = field(default_factory=lambda: os.getenv("AUTH0_CLIENT_ID", ""))
    auth0_client_secret: str = field(
        default_factory=lambda: os.getenv("AUTH0_CLIENT_SECRET", "")
    )
    auth0_scope: str = field(
        default_factory=lambda: os.getenv("AUTH0_SCOPE", "openid profile email")
    )
    auth0_connection: str = field(
        default_factory=lambda: os.getenv("AUTH0_CONNECTION", "google-oauth2")
    )

    # --- Tokens & sessions -------------------------------------------------
    jwt_secret: str = field(
        default_factory=lambda: os.getenv("JWT_SECRET", "fallback-jwt-secret-change-in-production")
    )
    jwt_issuer: str = field(
        default_factory=lambda: os.getenv("JWT_ISSUER", "universal-knowledge-chatbot")
    )
    jwt_expires_hours: int = field(
        default_factory=lambda: int(os.getenv("JWT_EXPIRES_HOURS", "24"))
    )
    state_token_minutes: int = field(
        default_factory=lambda: int(os.getenv("STATE_TOKEN_MINUTES", "10"))
    )
    session_secret: str = field(
        default_factory=lambda: os.getenv("SESSION_SECRET", "change-this-in-production")
    )
    session_secure: bool = field(
        default_factory=lambda: _bool("SESSION_SECURE", "false")
        or os.getenv("ENVIRONMENT", "development") == "production"
    )
    auth_required: bool = field(default_factory=lambda: _bool("AUTH_REQUIRED", "true"))
    auth_token_in_redirect: bool = field(
        default_factory=lambda: _bool("AUTH_TOKEN_IN_REDIRECT", "true")
    )

    # --- Domain restrictions ----------------------------------------------
    domain_restrictions_enabled: bool = field(
        default_factory=lambda: _bool("DOMAIN_RESTRICTIONS_ENABLED", "false")
    )
    allowed_domains: List[str] = field(
        default_factory=lambda: [d.lower() for d in _csv("ALLOWED_DOMAINS")]
    )
    allow_all_gmail: bool = field(default_factory=lambda: _bool("ALLOW_ALL_GMAIL", "true"))
    domain_block_message: str = field(
        default_factory=lambda: os.getenv(
            "DOMAIN_BLOCK_MESSAGE", "Access restricted to authorized company domains only."
        )
    )

    # --- Webhooks ----------------------------------------------------------
    webhook_api_key: str = field(default_factory=lambda: os.getenv("WEBHOOK_API_KEY", ""))

    # --- Uploads & ingestion -----------------------------------------------
    max_file_size: int = field(
        default_factory=lambda: int(os.getenv("MAX_FILE_SIZE", str(5 * 1024 * 1024)))
    )
    chunk_size: int = field(default_factory=lambda: int(os.getenv("CHUNK_SIZE", "1000")))
    chunk_overlap: int = field(default_factory=lambda: int(os.getenv("CHUNK_OVERLAP", "200")))
    upsert_batch_size: int = field(
        default_factory=lambda: int(os.getenv("UPSERT_BATCH_SIZE", "100"))
    )

    # --- Agent behaviour ---------------------------------------------------
    recursion_limit: int = field(
        default_factory=lambda: int(os.getenv("AGENT_RECURSION_LIMIT", "5"))
    )
    universal_fallback: bool = field(
        default_factory=lambda: _bool("UNIVERSAL_FALLBACK", "false")
    )
    max_message_length: int = field(
        default_factory=lambda: int(os.getenv("MAX_MESSAGE_LENGTH", "1000"))
    )
    history_max_messages: int = field(
        default_factory=lambda: int(os.getenv("HISTORY_MAX_MESSAGES", "10"))
    )
    history_ttl_seconds: int = field(
        default_factory=lambda: int(os.getenv("HISTORY_TTL_SECONDS", str(24 * 60 * 60)))
    )

    # --- Logging -----------------------------------------------------------
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("LOG_FILE", "logs/server.log"))
    analytics_file: str = field(
        default_factory=lambda: os.getenv("ANALYTICS_FILE", "logs/interactions.jsonl")
    )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


# Module-level singleton -- import this everywhere.
settings = Settings()


def validate_environment(cfg: Settings = settings) -> List[str]:
    """Warn about missing credentials.  Returns the list of missing variables."""
    from src.utils.logger import get_logger

    log = get_logger(__name__)

    ai_missing = [
        name
        for name, value in (
            ("OPENAI_API_KEY", cfg.openai_api_key),
            ("TAVILY_API_KEY", cfg.tavily_api_key),
            ("WEATHER_API_KEY", cfg.weather_api_key),
        )
        if not value
    ]
    auth_missing = [
        name
        for name, value in (
            ("AUTH0_DOMAIN", cfg.auth0_domain),
            ("AUTH0_CLIENT_ID", cfg.auth0_client_id),
            ("AUTH0_CLIENT_SECRET", cfg.auth0_client_secret),
        )
        if not value
    ]

    if ai_missing:
        log.warning(
            "Missing AI service configuration: %s. Chat features will not work "
            "until these are configured.",
            ", ".join(ai_missing),
        )
    if auth_missing:
        log.warning(
            "Missing identity provider configuration: %s. Login will not work.",
            ", ".join(auth_missing),
        )
    if cfg.domain_restrictions_enabled:
        log.info(
            "Domain restrictions enabled: allowed=%s allow_all_gmail=%s",
            cfg.allowed_domains,
            cfg.allow_all_gmail,
        )
    return ai_missing + auth_missing
