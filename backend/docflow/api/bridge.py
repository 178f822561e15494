# backend/docflow/api/bridge.py
from fastapi import APIRouter, Depends, File, UploadFile

from ..errors import ValidationError
from ..schemas.session import TemplateUploaded
from ..services.sessions import SessionOrchestrator
from ..utils.logging import api_logger
from .deps import CurrentUser, get_orchestrator, require_admin

router = APIRouter(prefix="/api/bridge", tags=["bridge"])


@router.post("/upload-template", response_model=TemplateUploaded)
def upload_template(
        file: UploadFile = File(None),
        user: CurrentUser = Depends(require_admin),
        orchestrator: SessionOrchestrator = Depends(get_orchestrator)
):
    if file is None or not file.filename:
        raise ValidationError("No file provided")

    data = file.file.read()
    api_logger.info("Received template upload", extra={
        "file_name": file.filename,
        "size": len(data)
    })

    file_id = orchestrator.upload_template(user.id, data, file.filename)
    return TemplateUploaded(fileId=file_id)
