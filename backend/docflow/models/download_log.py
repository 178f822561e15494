# backend/docflow/models/download_log.py
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from .document import new_id


class DownloadLog(Base):
    __tablename__ = "download_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    document_id = Column(
        String(36),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(String(36), nullable=False, index=True)
    downloaded_at = Column(DateTime(timezone=True), server_default=func.now())
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    context = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    log_metadata = Column("metadata", JSON, nullable=True)

    document = relationship("Document", back_populates="download_logs")
