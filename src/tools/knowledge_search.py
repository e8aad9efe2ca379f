"""Slack, Jira and GitHub search over records pushed in through the webhook.

All three embed the query, run a KNN search restricted to their ``source``
tag and format the hits as plain text for the model.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from src.memory.vector_search import VectorSearch
from src.tools.base import Tool, ToolContext, ToolInput, ToolName, ToolResult
from src.utils.logger import get_logger

log = get_logger(__name__)

SLACK_TOP_K = 15
JIRA_TOP_K = 5
GITHUB_TOP_K = 5


class SlackSearchInput(ToolInput):
    query: str = Field(..., min_length=1, description="The search query to find relevant project information")


class JiraSearchInput(ToolInput):
    query: str = Field(..., min_length=1, description="The search query for Jira issues")
    issue_key: Optional[str] = Field(None, alias="issueKey", description="Optional filter for specific Jira issue key")
    issue_type: Optional[str] = Field(None, alias="issueType", description="Optional filter for issue type")
    status: Optional[str] = Field(None, description="Optional filter for issue status")
    assignee: Optional[str] = Field(None, description="Optional filter for assignee")


class GitHubSearchInput(ToolInput):
    query: str = Field(..., min_length=1, description="The search query for GitHub commits")
    user: Optional[str] = Field(None, description="Optional filter for GitHub username")
    repo: Optional[str] = Field(None, description="Optional filter for repository name")
    date: Optional[str] = Field(None, description="Optional filter for commit date")


def _matches(meta: Dict[str, Any], wanted: Dict[str, Optional[str]]) -> bool:
    """Case-insensitive equality on the optional filters that were supplied."""
    for key, value in wanted.items():
        if value and str(meta.get(key, "")).lower() != value.lower():
            return False
    return True


def _format_slack(hits: List[Dict[str, Any]]) -> str:
    lines = [f"{h['metadata'].get('user', 'anonymous')}: {h['content']}" for h in hits]
    return "Based on discussions in the knowledge-chatbot channel:\n\n" + "\n\n".join(lines)


def _format_jira(hits: List[Dict[str, Any]]) -> str:
    blocks = []
    for h in hits:
        m = h["metadata"]
        blocks.append(
            f"Epic: {m.get('Epic')}\n"
            f"Title: {m.get('Ticket Title')}\n"
            f"Description: {m.get('Ticket Description')}\n"
            f"Type: {m.get('Ticket Type')}\n"
            f"Status: {m.get('Status')}\n"
            f"Assignee: {m.get('Assignee')}\n"
            f"Priority: {m.get('Priority')}\n"
            f"Project: {m.get('Project Name')}\n"
            f"Timestamp: {m.get('Created At')}\n"
            f"Creator: {m.get('Creator')}"
        )
    return "Jira Search Results:\n\n" + "\n\n".join(blocks)


def _format_github(hits: List[Dict[str, Any]]) -> str:
    blocks = []
    for h in hits:
        m = h["metadata"]
        blocks.append(
            f"ID: {h['id']}\n"
            f"Repo: {m.get('repo')}\n"
            f"Message: {m.get('message')}\n"
            f"User: {m.get('author')}\n"
            f"Date: {m.get('timestamp')}"
        )
    return "GitHub Search Results:\n\n" + "\n\n".join(blocks)


def make_slack_search_tool(vector_search: VectorSearch) -> Tool:
    async def slack_search(params: SlackSearchInput, context: ToolContext) -> ToolResult:
        log.info("Searching knowledge-chatbot discussions for: %s", params.query)
        hits = await vector_search.search(params.query, top_k=SLACK_TOP_K, filters={"source": "slack"})
        if not hits:
            return ToolResult.ok(
                {"message": "No relevant discussions found in the knowledge-chatbot channel."},
                resultCount=0,
            )
        hits.sort(key=lambda h: h.get("similarity", 0), reverse=True)
        return ToolResult.ok({"message": _format_slack(hits)}, resultCount=len(hits))

    return Tool(
        name=ToolName.SLACK_SEARCH,
        description=(
            "Search through discussions in the knowledge-chatbot channel to find information "
            "about project features, implementations, and decisions."
        ),
        input_model=SlackSearchInput,
        handler=slack_search,
    )


def make_jira_search_tool(vector_search: VectorSearch) -> Tool:
    async def jira_search(params: JiraSearchInput, context: ToolContext) -> ToolResult:
        log.info("Searching Jira issues for: %s", params.query)
        hits = await vector_search.search(params.query, top_k=JIRA_TOP_K, filters={"source": "jira"})
        wanted = {
            "Ticket Key": params.issue_key,
            "Ticket Type": params.issue_type,
            "Status": params.status,
            "Assignee": params.assignee,
        }
        hits = [h for h in hits if _matches(h["metadata"], wanted)]
        if not hits:
            return ToolResult.ok({"message": "No relevant Jira issues found."}, resultCount=0)
        hits.sort(key=lambda h: h.get("similarity", 0), reverse=True)
        return ToolResult.ok({"message": _format_jira(hits)}, resultCount=len(hits))

    return Tool(
        name=ToolName.JIRA_SEARCH,
        description=(
            "Search through stored Jira issues and comments to find relevant project "
            "information and issue details."
        ),
        input_model=JiraSearchInput,
        handler=jira_search,
    )


def make_github_search_tool(vector_search: VectorSearch) -> Tool:
    async def github_search(params: GitHubSearchInput, context: ToolContext) -> ToolResult:
        log.info("Searching GitHub commits for: %s", params.query)
        hits = await vector_search.search(params.query, top_k=GITHUB_TOP_K, filters={"source": "github"})
        wanted = {"author": params.user, "repo": params.repo}
        hits = [h for h in hits if _matches(h["metadata"], wanted)]
        if params.date:
            hits = [h for h in hits if str(h["metadata"].get("timestamp", "")).startswith(params.date)]
        if not hits:
            return ToolResult.ok({"message": "No relevant GitHub commits found."}, resultCount=0)
        hits.sort(key=lambda h: h.get("similarity", 0), reverse=True)
        return ToolResult.ok({"message": _format_github(hits)}, resultCount=len(hits))

    return Tool(
        name=ToolName.GITHUB_SEARCH,
        description=(
            "Search through stored GitHub commits and activity to find relevant project "
            "information and commit details."
        ),
        input_model=GitHubSearchInput,
        handler=github_search,
    )
