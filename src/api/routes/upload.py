"""PDF upload into the document index."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from src.api.deps import get_current_user, get_services, user_id_of
from src.errors import ValidationError
from src.ingestion.pipeline import DocumentMetadata
from src.services import Services
from src.utils.logger import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["files"])

PDF_CONTENT_TYPE = "application/pdf"


@router.post("/upload")
async def upload(
    file: Optional[UploadFile] = File(None),
    user: Optional[dict] = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Accept one PDF, ingest it into the vector index and report what was stored."""
    cfg = services.settings
    if file is None or not file.filename:
        raise ValidationError("Please select a PDF file to upload", error="No file uploaded")
    if file.content_type != PDF_CONTENT_TYPE:
        raise ValidationError("Only PDF files are allowed", error="Upload failed")

    data = await file.read(cfg.max_file_size + 1)
    if len(data) > cfg.max_file_size:
        limit_mb = cfg.max_file_size // (1024 * 1024)
        raise ValidationError(f"File size cannot exceed {limit_mb}MB", error="File upload error")

    meta = DocumentMetadata(
        file_id=str(uuid.uuid4()),
        file_name=file.filename,
        user_id=user_id_of(user),
        uploaded_at=datetime.now(timezone.utc).isoformat(),
    )
    log.info("File received: %s (%d bytes) as %s", meta.file_name, len(data), meta.file_id)
    result = await services.pipeline.ingest(data, meta)

    return {
        "success": True,
        "data": {
            "fileId": result.file_id,
            "fileName": meta.file_name,
            "pages": result.page_count,
            "chunks": result.chunk_count,
            "uploadedAt": meta.uploaded_at,
        },
    }
