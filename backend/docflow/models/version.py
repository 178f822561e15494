# backend/docflow/models/version.py
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, BigInteger, Integer, Boolean, JSON, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from .document import new_id


class UserDocumentVersion(Base):
    __tablename__ = "user_document_versions"
    __table_args__ = (
        UniqueConstraint(
            "original_document_id", "user_id", "version_number",
            name="uq_user_document_versions_doc_user_number"
        ),
        Index("ix_user_document_versions_doc_user", "original_document_id", "user_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    original_document_id = Column(
        String(36),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False
    )
    user_id = Column(String(36), nullable=False, index=True)
    version_number = Column(Integer, nullable=False, default=1)
    version_name = Column(String(255), nullable=True)

    # Rich-text payload for office documents, text/annotations for PDFs
    html_content = Column(Text, nullable=True)
    pdf_text_content = Column(Text, nullable=True)
    pdf_annotations = Column(JSON, nullable=True)

    exported_file_path = Column(String(1000), nullable=True)
    exported_file_size = Column(BigInteger, nullable=True)
    exported_mime_type = Column(String(255), nullable=True)
    original_file_type = Column(String(50), nullable=False)
    is_draft = Column(Boolean, nullable=False, default=True)

    google_drive_file_id = Column(String(255), nullable=True)
    google_edit_link = Column(String(1000), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    document = relationship("Document", back_populates="versions")
