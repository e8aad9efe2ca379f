"""Listing, reading and deleting the caller's uploaded documents."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from src.api.deps import get_current_user, get_services, user_id_of
from src.errors import NotFoundError
from src.services import Services
from src.utils.logger import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/files", tags=["files"])


@router.get("")
async def list_files(
    user: Optional[dict] = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Every uploaded document owned by the caller, with its chunk count."""
    chunks = await services.redis.list_document_chunks(user_id_of(user))
    files: Dict[str, Dict[str, Any]] = {}
    for chunk in chunks:
        entry = files.setdefault(
            chunk["file_id"],
            {
                "fileId": chunk["file_id"],
                "fileName": chunk["file_name"],
                "uploadedAt": chunk["uploaded_at"],
                "pages": chunk["page_count"],
                "chunks": 0,
            },
        )
        entry["chunks"] += 1
    return {"success": True, "data": list(files.values())}


@router.get("/{file_id}")
async def get_file(
    file_id: str,
    user: Optional[dict] = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    chunks = await services.redis.get_document_chunks(file_id, user_id_of(user))
    if not chunks:
        raise NotFoundError("No file found with the provided ID", error="File not found")
    first = chunks[0]
    return {
        "success": True,
        "data": {
            "fileId": first["file_id"],
            "fileName": first["file_name"],
            "uploadedAt": first["uploaded_at"],
            "pages": first["page_count"],
            "chunks": len(chunks),
            "content": "\n".join(c["content"] for c in chunks),
        },
    }


@router.delete("/{file_id}")
async def delete_file(
    file_id: str,
    user: Optional[dict] = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    deleted = await services.redis.delete_document(file_id, user_id_of(user))
    if not deleted:
        raise NotFoundError("No file found with the provided ID", error="File not found")
    log.info("Deleted %d chunks of file %s", deleted, file_id)
    return {"success": True, "message": "File deleted successfully"}
