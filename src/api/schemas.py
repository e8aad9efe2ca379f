"""Request bodies.  Field checks live in ``src.security.guardrails`` so the
error messages stay under our control."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: Any = None
    conversationId: Any = None
    fileId: Any = None


class LogoutRequest(BaseModel):
    returnTo: Optional[str] = None


class WebhookRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    Source: Optional[str] = None
    Data: Optional[Dict[str, Any]] = None
