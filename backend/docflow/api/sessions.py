# backend/docflow/api/sessions.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.session import SessionCreate, SessionFinished, SessionStarted
from ..services.sessions import SessionOrchestrator
from ..utils.logging import api_logger
from .deps import CurrentUser, get_current_user, get_orchestrator

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.post("", response_model=SessionStarted)
def create_session(
        request: SessionCreate,
        user: CurrentUser = Depends(get_current_user),
        orchestrator: SessionOrchestrator = Depends(get_orchestrator),
        db: Session = Depends(get_db)
):
    api_logger.info("Creating editing session", extra={
        "document_id": request.documentId,
        "user_id": user.id
    })
    started = orchestrator.create_session(db, user.id, request.documentId, request.templateFileId)
    return SessionStarted(**started)


@router.post("/{version_id}/finish", response_model=SessionFinished)
def finish_session(
        version_id: str,
        user: CurrentUser = Depends(get_current_user),
        orchestrator: SessionOrchestrator = Depends(get_orchestrator),
        db: Session = Depends(get_db)
):
    api_logger.info("Finishing editing session", extra={
        "version_id": version_id,
        "user_id": user.id
    })
    finished = orchestrator.finish_session(db, user.id, version_id)
    return SessionFinished(**finished)
