"""Document upload, listing, download, update and deletion with ownership checks."""

import logging
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, InvalidInput, NotFound, PayloadTooLarge
from app.models import Document, User
from app.services.storage import LocalBlobStorage, StorageError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"
STORAGE_PROVIDER = "local"


def upload_document(
    db: Session,
    storage: LocalBlobStorage,
    user: User,
    original_name: str,
    mime_type: str | None,
    data: bytes,
    max_bytes: int,
    is_public: bool = False,
    metadata: dict[str, Any] | None = None,
) -> Document:
    """
    Store the bytes, then record the document row.

    If the row cannot be committed the blob is removed again, so storage
    never keeps files without a row.
    """
    if not data:
        raise InvalidInput("No file uploaded")
    if len(data) > max_bytes:
        raise PayloadTooLarge(
            f"File size must not exceed {max_bytes // (1024 * 1024) or 1} MB."
        )
    blob = storage.save(original_name, data)
    document = Document(
        filename=blob.key,
        original_name=original_name,
        mime_type=mime_type or DEFAULT_MIME_TYPE,
        size=blob.size,
        path=blob.path,
        uploaded_by=user.id,
        is_public=is_public,
        doc_metadata={"provider": STORAGE_PROVIDER, **(metadata or {})},
    )
    db.add(document)
    try:
        db.commit()
    except Exception:
        db.rollback()
        storage.delete(blob.key)
        raise
    db.refresh(document)
    logger.info(
        "Document uploaded: document_id=%s user_id=%s size=%s",
        document.id,
        user.id,
        document.size,
    )
    return document


def list_documents(db: Session, user: User, page: int, limit: int) -> tuple[list[Document], int]:
    """Documents the user owns or that are public, newest first."""
    query = db.query(Document).filter(
        or_(Document.uploaded_by == user.id, Document.is_public.is_(True))
    )
    total = query.count()
    documents = (
        query.order_by(Document.created_at.desc(), Document.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return documents, total


def _get(db: Session, document_id: int) -> Document:
    document = db.query(Document).filter(Document.id == document_id).first()
    if document is None:
        raise NotFound("Document not found")
    return document


def _ensure_owner(document: Document, user: User) -> None:
    if document.uploaded_by != user.id:
        raise Forbidden("Access denied")


def get_document(db: Session, user: User, document_id: int) -> Document:
    """Return a document visible to the user (owner, or public)."""
    document = _get(db, document_id)
    if not document.is_public:
        _ensure_owner(document, user)
    return document


def read_document_content(
    db: Session, storage: LocalBlobStorage, user: User, document_id: int
) -> tuple[Document, bytes]:
    document = get_document(db, user, document_id)
    try:
        data = storage.read(document.filename)
    except StorageError as e:
        logger.error("Blob missing for document_id=%s: %s", document_id, e.message)
        raise NotFound("Document content not found") from e
    return document, data


def update_document(
    db: Session,
    user: User,
    document_id: int,
    is_public: bool | None = None,
    metadata: dict[str, Any] | None = None,
) -> Document:
    """Owner-only update; metadata is merged into the existing metadata."""
    document = _get(db, document_id)
    _ensure_owner(document, user)
    if is_public is not None:
        document.is_public = is_public
    if metadata:
        # Reassign so the JSON column is flagged dirty.
        document.doc_metadata = {**(document.doc_metadata or {}), **metadata}
    db.commit()
    db.refresh(document)
    return document


def delete_document(db: Session, storage: LocalBlobStorage, user: User, document_id: int) -> None:
    """Owner-only delete: remove the row, then the blob."""
    document = _get(db, document_id)
    _ensure_owner(document, user)
    key = document.filename
    db.delete(document)
    db.commit()
    try:
        storage.delete(key)
    except StorageError as e:
        # The row is gone; an orphaned blob is logged, not reported to the caller.
        logger.error("Blob delete failed for document_id=%s: %s", document_id, e.message)
    logger.info("Document deleted: document_id=%s user_id=%s", document_id, user.id)
