"""Inbound knowledge from automation hooks (Slack, Jira, GitHub)."""

import time
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from src.api.deps import get_services, verify_api_key
from src.api.schemas import WebhookRequest
from src.errors import ValidationError
from src.memory.vector_search import VectorSearch
from src.services import Services
from src.utils.logger import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/external", tags=["webhook"], dependencies=[Depends(verify_api_key)])

SLACK_CHANNEL = "knowledge-chatbot"


async def store_slack(vs: VectorSearch, data: Dict[str, Any]) -> Dict[str, Any]:
    text = data.get("text")
    if not text:
        raise ValidationError("Slack payload has no text", error="Data missing")
    return await vs.store_message(
        text,
        source="slack",
        channel=SLACK_CHANNEL,
        metadata={
            "user": data.get("user") or "anonymous",
            "timestamp": str(int(time.time() * 1000)),
            "source": "slack",
            "text": text,
        },
    )


async def store_jira(vs: VectorSearch, data: Dict[str, Any], source: str) -> Dict[str, Any]:
    text = " ".join(str(v) for v in data.values())
    return await vs.store_message(
        text,
        source="jira",
        channel=str(data.get("Project Name") or "jira"),
        metadata={
            "timestamp": data.get("Created At"),
            "user": data.get("Creator"),
            "source": source,
            **data,
        },
    )


async def store_github(vs: VectorSearch, data: Dict[str, Any], source: str) -> List[Dict[str, Any]]:
    """One record per commit; a commit that fails to store is logged and skipped."""
    groups = data.get("data") if isinstance(data.get("data"), list) else []
    stored: List[Dict[str, Any]] = []
    for group in groups:
        user = group.get("user") or "unknown"
        for commit in group.get("commits") or []:
            repo = commit.get("repo") or "unknown-repo"
            text = f"{commit.get('message')} by {user} on {commit.get('date') or ''} in {repo}"
            try:
                stored.append(
                    await vs.store_message(
                        text,
                        source="github",
                        channel=repo,
                        metadata={
                            "repo": repo,
                            "message": commit.get("message"),
                            "author": user,
                            "timestamp": commit.get("date") or str(int(time.time() * 1000)),
                            "source": source,
                        },
                    )
                )
            except Exception:
                log.exception("Error storing GitHub commit for %s", repo)
    return stored


@router.post("/webhook")
async def webhook(body: WebhookRequest, services: Services = Depends(get_services)):
    if not body.Data:
        raise ValidationError("Data missing", error="Data missing")
    source = (body.Source or "").lower()
    log.info("Received %s webhook", source or "unknown")

    if source == "slack":
        result = await store_slack(services.vector_search, body.Data)
        return {"success": True, "data": result}
    if source == "jira":
        result = await store_jira(services.vector_search, body.Data, body.Source)
        return {"success": True, "data": result}
    if source == "github":
        results = await store_github(services.vector_search, body.Data, body.Source)
        log.info("Processed GitHub webhook: stored %d commits", len(results))
        return {"success": True, "stored": len(results), "data": results}

    raise ValidationError(f"Unknown webhook source: {body.Source}", error="Unknown webhook source")
