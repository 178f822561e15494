# backend/docflow/services/sessions.py
"""Editing sessions mediated by the document-conversion bridge.

A version record moves through ``NoSession -> Draft -> Finalized``:
``create_session`` clones a bridge template and records a draft version,
``finish_session`` exports the edited copy, stores it and finalizes the
version. Finalized versions are never changed again.
"""
import base64
import binascii
import time
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import (
    BridgeMalformedResponse, DocflowError, EmptyExport, MissingFileId, NoBridgeFile,
    NotFound, NotFoundOrUnauthorized, SessionAlreadyFinished, SessionStartFailed, Unauthorized
)
from ..models import Document, UserDocumentVersion
from ..utils.logging import service_logger
from .bridge import BridgeClient
from .downloads import record_download
from .lineage import insert_version
from .storage import ObjectStorage

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
EXPORT_LOG_CONTEXT = "Google Docs Export"
SESSION_FILE_TYPE = "google"


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise Unauthorized()
    return user_id


class SessionOrchestrator:
    def __init__(
            self,
            bridge: BridgeClient,
            storage: ObjectStorage,
            edit_url_template: str = settings.BRIDGE_EDIT_URL_TEMPLATE,
            signed_url_ttl: int = settings.SIGNED_URL_TTL_SECONDS
    ):
        self.bridge = bridge
        self.storage = storage
        self.edit_url_template = edit_url_template
        self.signed_url_ttl = signed_url_ttl

    def edit_url(self, file_id: str) -> str:
        return self.edit_url_template.format(file_id=file_id)

    def _register_template(self, data: bytes, file_name: str, mime_type: Optional[str]) -> str:
        payload = {
            "fileName": file_name,
            "contentBase64": base64.b64encode(data).decode("ascii"),
            "mimeType": mime_type or DOCX_MIME_TYPE,
        }
        try:
            return self.bridge.invoke("upload", payload)
        except BridgeMalformedResponse as e:
            raise MissingFileId() from e

    def upload_template(self, user_id: Optional[str], data: bytes, file_name: str) -> str:
        """Register an office document with the bridge as a reusable template"""
        _require_user(user_id)
        service_logger.info("Uploading template to bridge", extra={
            "file_name": file_name,
            "size": len(data)
        })

        file_id = self._register_template(data, file_name, DOCX_MIME_TYPE)

        service_logger.info("Template uploaded", extra={"file_name": file_name, "bridge_file_id": file_id})
        return file_id

    def create_session(self, db: Session, user_id: Optional[str], document_id: str, template_file_id: str):
        """Clone the template for this user and open a draft version for it"""
        user_id = _require_user(user_id)
        if not db.query(Document.id).filter(Document.id == document_id).first():
            raise NotFound("Document not found")

        service_logger.info("Starting editing session", extra={
            "document_id": document_id,
            "user_id": user_id
        })

        try:
            file_id = self.bridge.invoke("copy", {
                "templateId": template_file_id,
                "name": f"Edit - Doc {document_id[:8]}... - {user_id}",
            })
        except DocflowError as e:
            service_logger.error("Bridge copy failed", extra={
                "document_id": document_id,
                "error": e.message
            })
            raise SessionStartFailed() from e

        edit_url = self.edit_url(file_id)
        version = insert_version(db, document_id, user_id, lambda number: {
            "version_name": f"Draft {number}",
            "original_file_type": SESSION_FILE_TYPE,
            "google_drive_file_id": file_id,
            "google_edit_link": edit_url,
            "is_draft": True,
        })
        db.commit()

        service_logger.info("Editing session started", extra={
            "document_id": document_id,
            "version_id": version.id,
            "version_number": version.version_number
        })
        return {"editUrl": edit_url, "versionId": version.id}

    def finish_session(self, db: Session, user_id: Optional[str], version_id: str):
        """Export the edited copy, store it and finalize the version"""
        user_id = _require_user(user_id)
        start_time = time.time()

        version = db.query(UserDocumentVersion).filter(
            UserDocumentVersion.id == version_id,
            UserDocumentVersion.user_id == user_id
        ).first()
        if not version:
            raise NotFoundOrUnauthorized()
        if not version.google_drive_file_id:
            raise NoBridgeFile()
        if not version.is_draft:
            raise SessionAlreadyFinished()

        try:
            exported = self.bridge.invoke("export", {"fileId": version.google_drive_file_id})
        except BridgeMalformedResponse as e:
            raise EmptyExport() from e

        try:
            data = base64.b64decode(exported, validate=True)
        except (binascii.Error, ValueError) as e:
            raise EmptyExport("Bridge returned invalid DOCX data") from e
        if not data:
            raise EmptyExport()

        path = f"{user_id}/{version.original_document_id}/{version.id}/final.docx"
        self.storage.write(path, data, DOCX_MIME_TYPE)
        file_url = self.storage.signed_url(path, self.signed_url_ttl)

        # One statement so the row is either fully finalized or untouched
        result = db.execute(
            update(UserDocumentVersion)
            .where(UserDocumentVersion.id == version.id, UserDocumentVersion.is_draft.is_(True))
            .values(
                is_draft=False,
                exported_file_path=path,
                exported_file_size=len(data),
                exported_mime_type=DOCX_MIME_TYPE,
                updated_at=func.now()
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            raise SessionAlreadyFinished()

        record_download(db, version.original_document_id, user_id, context=EXPORT_LOG_CONTEXT)
        db.commit()

        service_logger.info("Editing session finished", extra={
            "version_id": version_id,
            "exported_path": path,
            "size": len(data),
            "execution_time_ms": round((time.time() - start_time) * 1000, 2)
        })
        return {"fileUrl": file_url}

    def convert_document(self, db: Session, user_id: Optional[str], document_id: str) -> str:
        """Register a stored document with the bridge and remember the template id"""
        _require_user(user_id)
        document = db.query(Document).filter(Document.id == document_id).first()
        if not document:
            raise NotFound("Document not found")

        data = self.storage.read(document.file_path)
        template_id = self._register_template(data, document.file_name, document.mime_type)

        document.template_id = template_id
        db.commit()

        service_logger.info("Converted document to bridge template", extra={
            "document_id": document_id,
            "bridge_template_id": template_id
        })
        return template_id
