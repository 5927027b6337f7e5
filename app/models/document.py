"""ORM model for documents stored in blob storage."""

from sqlalchemy import JSON, BigInteger, Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin


class Document(TimestampMixin, Base):
    """
    Metadata row for an uploaded file; the bytes live in blob storage under filename.

    Visible to its uploader, and to every reader when is_public is set.
    """

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    filename = Column(String(512), nullable=False, unique=True)
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=False)
    size = Column(BigInteger, nullable=False)
    path = Column(String(2048), nullable=False)
    uploaded_by = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_public = Column(Boolean, nullable=False, default=False)
    # "metadata" is reserved on declarative classes.
    doc_metadata = Column(
        "metadata",
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )

    uploader = relationship("User", back_populates="documents")
