"""Chat endpoint: one user message in, one routed answer out."""

import time
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends

from src.agent.graph import run_workflow
from src.agent.state import AI, HUMAN, Message
from src.api.deps import get_current_user, get_services, user_id_of
from src.api.schemas import ChatRequest
from src.errors import AppError, UpstreamServiceError
from src.security.guardrails import validate_chat_request
from src.services import Services
from src.utils.logger import get_logger, log_interaction

log = get_logger(__name__)

router = APIRouter(tags=["chat"])


@router.post("/chat")
async def chat(
    body: ChatRequest,
    user: Optional[dict] = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Route one user message through the workflow and return the answer."""
    file_id = body.fileId or None
    validate_chat_request(
        body.message, body.conversationId, file_id, services.settings.max_message_length
    )
    conversation_id = body.conversationId or str(uuid.uuid4())
    user_id = user_id_of(user)
    started = time.perf_counter()

    try:
        history = await services.conversations.load(user_id, conversation_id)
        result = await run_workflow(
            services.graph,
            conversation_id=conversation_id,
            user_query=body.message,
            file_id=file_id,
            user_id=user_id,
            history=history,
        )
        answer = result.get("final_response", "")
        await services.conversations.append(
            user_id,
            conversation_id,
            Message(role=HUMAN, content=body.message),
            Message(role=AI, content=answer),
        )
    except AppError:
        raise
    except Exception as exc:
        log.exception("Chat request failed for conversation %s", conversation_id)
        raise UpstreamServiceError(str(exc), error="Failed to generate response") from exc

    tools_used = result.get("tools_used") or []
    elapsed_ms = (time.perf_counter() - started) * 1000
    log_interaction(
        conversation_id=conversation_id,
        query=body.message,
        route=result.get("selected_node", ""),
        tools_used=tools_used,
        response_time_ms=elapsed_ms,
        user_id=user_id,
        file_id=file_id,
    )

    data = {
        "message": answer,
        "metadata": {
            "conversationId": conversation_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "fileId": file_id,
        },
        "user": {"id": user_id},
    }
    if tools_used:
        data["toolsUsed"] = tools_used
    return {"success": True, "data": data}
