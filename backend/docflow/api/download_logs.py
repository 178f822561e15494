# backend/docflow/api/download_logs.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import DocflowError, Forbidden
from ..schemas.download_log import DownloadLog as DownloadLogSchema, DownloadLogCreate
from ..services import downloads, lineage
from ..utils.logging import api_logger
from .deps import CurrentUser, get_current_user

router = APIRouter(prefix="/api/download-logs", tags=["download-logs"])


def client_ip(request: Request) -> Optional[str]:
    forwarded_for = request.headers.get("x-forwarded-for")
    if not forwarded_for:
        return None
    return forwarded_for.split(",")[0].strip() or None


@router.get("", response_model=List[DownloadLogSchema])
def list_download_logs(
        documentId: Optional[str] = None,
        userId: Optional[str] = None,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    # Non-admins only ever see their own downloads
    if not user.is_admin:
        userId = user.id

    return downloads.list_downloads(db, document_id=documentId, user_id=userId)


@router.post("", response_model=DownloadLogSchema, status_code=201)
def create_download_log(
        log: DownloadLogCreate,
        request: Request,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    if log.user_id != user.id:
        raise Forbidden("Forbidden")
    lineage.get_document(db, log.document_id)

    try:
        created = downloads.record_download(
            db,
            log.document_id,
            user.id,
            context=log.context or None,
            metadata=log.metadata,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent") or None
        )
        db.commit()
        db.refresh(created)
    except DocflowError:
        raise
    except Exception as e:
        api_logger.error("Error creating download log", extra={"document_id": log.document_id, "error": str(e)})
        db.rollback()
        raise

    return created
