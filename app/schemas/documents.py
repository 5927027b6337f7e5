"""Request/response schemas for document endpoints."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field

from app.schemas.common import CamelModel


class DocumentOut(CamelModel):
    """Document metadata (the file itself is served by the content endpoint)."""

    id: int
    filename: str
    original_name: str
    mime_type: str
    size: int
    uploaded_by: int
    is_public: bool
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("doc_metadata", "metadata"),
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DocumentResponse(CamelModel):
    document: DocumentOut


class DocumentMessageResponse(CamelModel):
    message: str
    document: DocumentOut


class DocumentsListResponse(CamelModel):
    documents: list[DocumentOut]
    total: int
    page: int
    total_pages: int


class DocumentUpdateRequest(CamelModel):
    """is_public replaces the flag; metadata is merged into the stored metadata."""

    is_public: bool | None = None
    metadata: dict[str, Any] | None = None
