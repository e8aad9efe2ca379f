"""Tool contract shared by every capability the agent can call.

A tool never raises past :meth:`Tool.invoke`: bad arguments and handler
failures both come back as ``ToolResult(success=False)`` so the agent loop
can hand them to the model like any other result.

Handlers receive the validated arguments plus a ``ToolContext`` describing
the request (who is asking).  The context never comes from the model.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError

from src.utils.logger import get_logger

log = get_logger(__name__)


class ToolName(str, Enum):
    DOCUMENT_QA = "documentQA"
    WEATHER = "weatherLookup"
    WEB_SEARCH = "webSearch"
    SLACK_SEARCH = "slack_search"
    JIRA_SEARCH = "jira_search"
    GITHUB_SEARCH = "github_search"


class ToolInput(BaseModel):
    """Base for tool argument models; accepts both camelCase aliases and field names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ToolResult:
    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.metadata.setdefault("timestamp", _now())

    @classmethod
    def ok(cls, data: Dict[str, Any], **metadata: Any) -> "ToolResult":
        return cls(success=True, data=data, metadata=dict(metadata))

    @classmethod
    def failure(cls, error: str, data: Optional[Dict[str, Any]] = None, **metadata: Any) -> "ToolResult":
        return cls(success=False, data=data or {}, error=error, metadata=dict(metadata))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success, **self.data}
        if self.error is not None:
            out["error"] = self.error
        out["metadata"] = self.metadata
        return out

    def to_content(self) -> str:
        """Serialised form handed back to the model as a tool message."""
        return json.dumps(self.to_dict(), default=str)


ANONYMOUS_USER = "anonymous"


@dataclass(frozen=True)
class ToolContext:
    user_id: str = ANONYMOUS_USER


Handler = Callable[[Any, ToolContext], Awaitable[ToolResult]]


@dataclass(frozen=True)
class Tool:
    name: ToolName
    description: str
    input_model: Type[ToolInput]
    handler: Handler

    def to_openai(self) -> Dict[str, Any]:
        """Function-calling declaration for the chat completions API."""
        return {
            "type": "function",
            "function": {
                "name": self.name.value,
                "description": self.description,
                "parameters": self.input_model.model_json_schema(by_alias=True),
            },
        }

    async def invoke(
        self, arguments: Dict[str, Any], context: Optional[ToolContext] = None
    ) -> ToolResult:
        """Validate *arguments* and run the handler, converting every failure."""
        try:
            params = self.input_model.model_validate(arguments or {})
        except SchemaError as exc:
            log.warning("Invalid arguments for %s: %s", self.name.value, exc)
            return ToolResult.failure(f"Invalid arguments for {self.name.value}: {exc}")

        try:
            return await self.handler(params, context or ToolContext())
        except Exception as exc:
            log.exception("Tool %s failed", self.name.value)
            return ToolResult.failure(str(exc) or exc.__class__.__name__)
