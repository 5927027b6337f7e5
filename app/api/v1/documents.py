"""Document endpoints: multipart upload, listing, metadata, download, update, delete."""

import json
from typing import Annotated, Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile
from sqlalchemy.orm import Session

from app.api.v1.auth import require_permissions
from app.core.config import get_settings
from app.core.database import get_db
from app.models import User
from app.schemas.common import MessageResponse, total_pages
from app.schemas.documents import (
    DocumentMessageResponse,
    DocumentOut,
    DocumentResponse,
    DocumentsListResponse,
    DocumentUpdateRequest,
)
from app.services import documents
from app.services.storage import LocalBlobStorage, get_storage

router = APIRouter()

MAX_PAGE_SIZE = 100


def _parse_metadata(raw: str | None) -> dict[str, Any] | None:
    """Multipart metadata arrives as a JSON object string."""
    if raw is None or not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid metadata JSON: {e!s}") from e
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="metadata must be a JSON object.")
    return data


def _content_disposition(filename: str) -> str:
    ascii_name = filename.encode("ascii", "ignore").decode("ascii").replace('"', "") or "download"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


@router.post("", response_model=DocumentMessageResponse, status_code=201)
async def upload_document(
    user: Annotated[User, Depends(require_permissions("document:create"))],
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[LocalBlobStorage, Depends(get_storage)],
    file: Annotated[UploadFile, File(description="File to store")],
    is_public: Annotated[bool, Form(alias="isPublic")] = False,
    metadata: Annotated[str | None, Form(description="JSON object")] = None,
) -> DocumentMessageResponse:
    """
    Upload one file as `multipart/form-data` (field `file`).

    Optional form fields: `isPublic` (bool) and `metadata` (JSON object).
    """
    max_bytes = get_settings().MAX_UPLOAD_FILE_BYTES
    # One byte past the limit is enough to detect an oversized upload.
    data = await file.read(max_bytes + 1)
    document = documents.upload_document(
        db,
        storage,
        user,
        original_name=file.filename or "file",
        mime_type=file.content_type,
        data=data,
        max_bytes=max_bytes,
        is_public=is_public,
        metadata=_parse_metadata(metadata),
    )
    return DocumentMessageResponse(
        message="Document uploaded successfully",
        document=DocumentOut.model_validate(document),
    )


@router.get("", response_model=DocumentsListResponse)
def list_documents(
    user: Annotated[User, Depends(require_permissions("document:read"))],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = 10,
) -> DocumentsListResponse:
    """List the caller's documents and all public documents, newest first."""
    rows, total = documents.list_documents(db, user, page, limit)
    return DocumentsListResponse(
        documents=[DocumentOut.model_validate(d) for d in rows],
        total=total,
        page=page,
        total_pages=total_pages(total, limit),
    )


@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: int,
    user: Annotated[User, Depends(require_permissions("document:read"))],
    db: Annotated[Session, Depends(get_db)],
) -> DocumentResponse:
    document = documents.get_document(db, user, document_id)
    return DocumentResponse(document=DocumentOut.model_validate(document))


@router.get("/{document_id}/content")
def download_document(
    document_id: int,
    user: Annotated[User, Depends(require_permissions("document:read"))],
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[LocalBlobStorage, Depends(get_storage)],
) -> Response:
    """Download the stored file as an attachment."""
    document, data = documents.read_document_content(db, storage, user, document_id)
    return Response(
        content=data,
        media_type=document.mime_type,
        headers={"Content-Disposition": _content_disposition(document.original_name)},
    )


@router.patch("/{document_id}", response_model=DocumentMessageResponse)
def update_document(
    document_id: int,
    body: DocumentUpdateRequest,
    user: Annotated[User, Depends(require_permissions("document:update"))],
    db: Annotated[Session, Depends(get_db)],
) -> DocumentMessageResponse:
    """Owner-only: change visibility and/or merge metadata."""
    document = documents.update_document(
        db, user, document_id, is_public=body.is_public, metadata=body.metadata
    )
    return DocumentMessageResponse(
        message="Document updated successfully",
        document=DocumentOut.model_validate(document),
    )


@router.delete("/{document_id}", response_model=MessageResponse)
def delete_document(
    document_id: int,
    user: Annotated[User, Depends(require_permissions("document:delete"))],
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[LocalBlobStorage, Depends(get_storage)],
) -> MessageResponse:
    """Owner-only: delete the document row and its stored file."""
    documents.delete_document(db, storage, user, document_id)
    return MessageResponse(message="Document deleted successfully")
