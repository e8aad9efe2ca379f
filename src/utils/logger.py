"""Structured logging and per-request chat interaction logging."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Return a configured logger (creates handler only once per name)."""
    from src.utils.config import settings

    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    effective_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    logger.setLevel(effective_level)

    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)

    # Optional file handler
    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setFormatter(logging.Formatter(fmt))
        logger.addHandler(fh)

    return logger


def log_interaction(
    conversation_id: str,
    query: str,
    route: str,
    tools_used: List[str],
    response_time_ms: float,
    user_id: str = "anonymous",
    file_id: Optional[str] = None,
) -> None:
    """Append a single chat interaction record to the JSONL analytics file."""
    from src.utils.config import settings

    if not settings.analytics_file:
        return

    record = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "conversation_id": conversation_id,
        "user_id": user_id,
        "query": query,
        "file_id": file_id,
        "route": route,
        "tools_used": tools_used,
        "response_time_ms": round(response_time_ms, 1),
    }

    path = Path(settings.analytics_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(record) + "\n")
