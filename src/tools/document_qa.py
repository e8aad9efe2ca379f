"""documentQA -- similarity search inside one uploaded document."""

from pydantic import Field

from src.memory.records import DOCUMENT_SOURCE
from src.memory.vector_search import VectorSearch
from src.tools.base import Tool, ToolContext, ToolInput, ToolName, ToolResult
from src.utils.logger import get_logger

log = get_logger(__name__)

DESCRIPTION = (
    "Search within uploaded documents to find relevant information. "
    "Use this tool when the user asks about specific documents or when a fileId is provided. "
    "The tool searches through document chunks to find the most relevant information."
)


class DocumentQAInput(ToolInput):
    query: str = Field(..., min_length=1, description="The search query to find relevant information in the document")
    file_id: str = Field(..., alias="fileId", min_length=1, description="The ID of the file to search in")
    max_results: int = Field(
        3, alias="maxResults", ge=1, le=5, description="Maximum number of chunks to return (1-5)."
    )


def make_document_qa_tool(vector_search: VectorSearch) -> Tool:
    async def document_qa(params: DocumentQAInput, context: ToolContext) -> ToolResult:
        log.info("Querying document with file_id: %s for user %s", params.file_id, context.user_id)
        hits = await vector_search.search(
            params.query,
            top_k=params.max_results,
            filters={
                "source": DOCUMENT_SOURCE,
                "file_id": params.file_id,
                "user_id": context.user_id,
            },
        )
        log.info("Found %d relevant chunks for query", len(hits))
        return ToolResult.ok(
            {
                "query": params.query,
                "results": [
                    {
                        "content": hit["content"],
                        "metadata": {
                            "fileName": hit["file_name"],
                            "chunkIndex": hit["chunk_index"],
                            "pageNumber": hit["page_number"],
                            "similarity": hit.get("similarity"),
                        },
                    }
                    for hit in hits
                ],
            },
            fileId=params.file_id,
            resultCount=len(hits),
        )

    return Tool(
        name=ToolName.DOCUMENT_QA,
        description=DESCRIPTION,
        input_model=DocumentQAInput,
        handler=document_qa,
    )
