"""Records stored in the vector index.

Two kinds share one index and are told apart by the ``source`` tag:
uploaded document chunks (``source == "document"``) and knowledge
messages pushed through the webhook (``slack`` / ``jira`` / ``github``).
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

DOCUMENT_SOURCE = "document"


@dataclass(frozen=True)
class DocumentChunk:
    """One overlapping slice of an uploaded document."""

    file_id: str
    chunk_index: int
    content: str
    embedding: List[float]
    file_name: str
    user_id: str
    uploaded_at: str
    page_number: int
    page_count: int

    @property
    def record_id(self) -> str:
        return f"{self.file_id}-chunk-{self.chunk_index}"

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "source": DOCUMENT_SOURCE,
            "file_id": self.file_id,
            "user_id": self.user_id,
            "file_name": self.file_name,
            "uploaded_at": self.uploaded_at,
            "chunk_index": self.chunk_index,
            "page_number": self.page_number,
            "page_count": self.page_count,
            "metadata": "{}",
        }


@dataclass(frozen=True)
class KnowledgeRecord:
    """A Slack message, Jira issue or GitHub commit pushed by a webhook."""

    record_id: str
    source: str
    content: str
    embedding: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "source": self.source,
            "metadata": json.dumps(self.metadata, default=str),
        }
