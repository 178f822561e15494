# backend/docflow/models/document.py
from uuid import uuid4

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, BigInteger, Integer, Boolean, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


def new_id() -> str:
    return str(uuid4())


class Document(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(255), nullable=False, index=True)
    tags = Column(JSON, nullable=False, default=list)
    file_name = Column(String(500), nullable=False)
    file_path = Column(String(1000), nullable=False)
    file_size = Column(BigInteger, nullable=False, default=0)
    file_type = Column(String(50), nullable=False, index=True)
    mime_type = Column(String(255), nullable=False)
    version = Column(String(20), nullable=True, default="1.0")
    # Null means this row is a root; children always point at a root (depth <= 1)
    parent_document_id = Column(
        String(36),
        ForeignKey("documents.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    download_count = Column(Integer, nullable=False, default=0)
    searchable_content = Column(Text, nullable=True)
    template_id = Column(String(255), nullable=True)
    created_by = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    versions = relationship(
        "UserDocumentVersion",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    download_logs = relationship(
        "DownloadLog",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
