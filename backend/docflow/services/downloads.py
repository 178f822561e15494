# backend/docflow/services/downloads.py
from typing import Any, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from ..models import Document, DownloadLog
from ..utils.logging import service_logger


def record_download(
        db: Session,
        document_id: str,
        user_id: str,
        context: Optional[str] = None,
        metadata: Optional[Any] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
) -> DownloadLog:
    """Append a download log and bump the document's counter in the caller's transaction.

    Nothing is committed here; the caller commits both writes together.
    """
    log = DownloadLog(
        document_id=document_id,
        user_id=user_id,
        context=context,
        log_metadata=metadata,
        ip_address=ip_address,
        user_agent=user_agent
    )
    db.add(log)
    db.execute(
        update(Document)
        .where(Document.id == document_id)
        .values(download_count=Document.download_count + 1)
        .execution_options(synchronize_session=False)
    )

    service_logger.info("Recorded download", extra={
        "document_id": document_id,
        "user_id": user_id,
        "context": context
    })
    return log


def list_downloads(
        db: Session,
        document_id: Optional[str] = None,
        user_id: Optional[str] = None
) -> List[DownloadLog]:
    """Download logs, newest first, with the document summary loaded"""
    q = db.query(DownloadLog).options(joinedload(DownloadLog.document))
    if document_id:
        q = q.filter(DownloadLog.document_id == document_id)
    if user_id:
        q = q.filter(DownloadLog.user_id == user_id)
    return q.order_by(DownloadLog.downloaded_at.desc(), DownloadLog.id).all()
