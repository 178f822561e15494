# backend/docflow/api/documents.py
import time
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy import distinct
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..errors import DocflowError, StorageError, ValidationError
from ..models import Document
from ..schemas.document import (
    ConvertResult, Document as DocumentSchema, DocumentCreate, DocumentDeleteResult,
    DocumentSearchParams, DocumentUpdate, DocumentUpdateResult, DownloadUrl, FilterOptions
)
from ..schemas.version import SavedVersion, Version, VersionContent
from ..services import lineage
from ..services.search import SearchAggregator
from ..services.sessions import SessionOrchestrator
from ..services.storage import ObjectStorage
from ..utils.files import build_storage_path, get_file_type, parse_tags
from ..utils.logging import api_logger
from .deps import (
    CurrentUser, get_current_user, get_orchestrator, get_search, get_storage,
    require_admin, require_uploader
)

router = APIRouter(prefix="/api/documents", tags=["documents"])


def evict_blob(storage: ObjectStorage, path: str) -> None:
    """Remove a stored blob; a failure is logged because the row state is already settled"""
    try:
        storage.delete(path)
    except StorageError as e:
        api_logger.warning("Failed to evict document blob", extra={"file_path": path, "error": e.message})


@router.get("", response_model=List[DocumentSchema])
def list_documents(
        searchQuery: Optional[str] = None,
        category: Optional[str] = None,
        fileType: Optional[str] = None,
        featuredOnly: bool = False,
        tags: Optional[str] = None,
        fromDate: Optional[date] = None,
        toDate: Optional[date] = None,
        sort: Optional[str] = None,
        limit: int = Query(settings.SEARCH_RESULT_LIMIT, ge=1, le=500),
        offset: int = Query(0, ge=0),
        user: CurrentUser = Depends(get_current_user),
        search: SearchAggregator = Depends(get_search),
        db: Session = Depends(get_db)
):
    params = DocumentSearchParams(
        searchQuery=searchQuery,
        category=category,
        fileType=fileType,
        featuredOnly=featuredOnly,
        tags=[tag for tag in (tags or "").split(",") if tag],
        fromDate=fromDate,
        toDate=toDate,
        sort=sort,
        limit=limit,
        offset=offset
    )
    api_logger.info("Searching documents", extra={
        "user_id": user.id,
        "has_query": bool(params.searchQuery),
        "category": category,
        "file_type": fileType
    })

    try:
        return search.search(db, params)
    except DocflowError:
        raise
    except Exception as e:
        api_logger.error("Error searching documents", extra={"error": str(e)})
        raise


@router.post("", response_model=DocumentSchema, status_code=201)
def create_document(
        document: DocumentCreate,
        user: CurrentUser = Depends(require_admin),
        db: Session = Depends(get_db)
):
    api_logger.info("Creating new document", extra={
        "title": document.title,
        "parent_document_id": document.parent_document_id
    })

    try:
        return lineage.create_document(db, document.model_dump(), created_by=user.id)
    except DocflowError:
        raise
    except Exception as e:
        api_logger.error("Error creating document", extra={"title": document.title, "error": str(e)})
        db.rollback()
        raise


@router.post("/upload", response_model=DocumentSchema, status_code=201)
def upload_document(
        file: Optional[UploadFile] = File(None),
        title: Optional[str] = Form(None),
        category: Optional[str] = Form(None),
        description: Optional[str] = Form(None),
        tags: Optional[str] = Form(None),
        is_featured: bool = Form(False),
        searchable_content: Optional[str] = Form(None),
        parent_document_id: Optional[str] = Form(None),
        user: CurrentUser = Depends(require_uploader),
        storage: ObjectStorage = Depends(get_storage),
        db: Session = Depends(get_db)
):
    if file is None or not file.filename or not title or not category:
        raise ValidationError("Missing required fields: file, title, category")

    start_time = time.time()
    version_label = "1.0"
    family_root_id = None
    if parent_document_id:
        family_root_id, version_label = lineage.next_family_version_label(db, parent_document_id)

    data = file.file.read()
    path = build_storage_path(user.id, file.filename)
    storage.write(path, data, file.content_type or "application/octet-stream")

    try:
        document = lineage.create_document(db, {
            "title": title,
            "description": description or None,
            "category": category,
            "tags": parse_tags(tags),
            "file_name": file.filename,
            "file_path": path,
            "file_size": len(data),
            "file_type": get_file_type(file.filename),
            "mime_type": file.content_type or "application/octet-stream",
            "version": version_label,
            "parent_document_id": family_root_id,
            "is_active": True,
            "is_featured": is_featured,
            "searchable_content": searchable_content or None,
        }, created_by=user.id)
    except Exception as e:
        api_logger.error("Error registering uploaded document", extra={"file_path": path, "error": str(e)})
        db.rollback()
        evict_blob(storage, path)
        raise

    api_logger.info("Uploaded document", extra={
        "document_id": document.id,
        "version": version_label,
        "size": len(data),
        "execution_time_ms": round((time.time() - start_time) * 1000, 2)
    })
    return document


@router.get("/filter-options", response_model=FilterOptions)
def filter_options(
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    roots = Document.parent_document_id.is_(None)
    categories = db.query(distinct(Document.category)).filter(roots).order_by(Document.category).all()
    file_types = db.query(distinct(Document.file_type)).filter(roots).order_by(Document.file_type).all()
    return FilterOptions(
        categories=[row[0] for row in categories if row[0]],
        fileTypes=[row[0] for row in file_types if row[0]]
    )


@router.get("/{document_id}", response_model=DocumentSchema)
def get_document(
        document_id: str,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    api_logger.info("Retrieving document details", extra={"document_id": document_id})
    return lineage.get_document(db, document_id)


@router.put("/{document_id}", response_model=DocumentUpdateResult)
def update_document(
        document_id: str,
        document: DocumentUpdate,
        user: CurrentUser = Depends(require_admin),
        db: Session = Depends(get_db)
):
    patch = lineage.DocumentPatch.from_update(document)
    api_logger.info("Updating document family", extra={
        "document_id": document_id,
        "update_fields": sorted(patch.values.keys())
    })

    try:
        updated, touched = lineage.update_metadata(db, document_id, patch)
    except DocflowError:
        raise
    except Exception as e:
        api_logger.error("Error updating document", extra={"document_id": document_id, "error": str(e)})
        db.rollback()
        raise

    result = DocumentSchema.model_validate(updated).model_dump()
    return DocumentUpdateResult(**result, versionsUpdated=touched)


@router.delete("/{document_id}", response_model=DocumentDeleteResult)
def delete_document(
        document_id: str,
        user: CurrentUser = Depends(require_admin),
        storage: ObjectStorage = Depends(get_storage),
        db: Session = Depends(get_db)
):
    api_logger.info("Deleting document", extra={"document_id": document_id})

    file_path = lineage.delete_document(db, document_id)
    evict_blob(storage, file_path)
    return DocumentDeleteResult(file_path=file_path)


@router.get("/{document_id}/download-url", response_model=DownloadUrl)
def get_download_url(
        document_id: str,
        user: CurrentUser = Depends(get_current_user),
        storage: ObjectStorage = Depends(get_storage),
        db: Session = Depends(get_db)
):
    document = lineage.get_document(db, document_id)
    return DownloadUrl(signedUrl=storage.signed_url(document.file_path))


@router.get("/{document_id}/versions", response_model=List[DocumentSchema])
def list_document_family(
        document_id: str,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    return lineage.list_family(db, document_id)


@router.post("/{document_id}/convert", response_model=ConvertResult)
def convert_document(
        document_id: str,
        user: CurrentUser = Depends(require_admin),
        orchestrator: SessionOrchestrator = Depends(get_orchestrator),
        db: Session = Depends(get_db)
):
    api_logger.info("Converting document to bridge template", extra={"document_id": document_id})
    template_id = orchestrator.convert_document(db, user.id, document_id)
    return ConvertResult(bridgeTemplateId=template_id)


@router.post("/{document_id}/edit", response_model=SavedVersion, status_code=201)
def save_document_version(
        document_id: str,
        content: VersionContent,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    api_logger.info("Saving document version", extra={
        "document_id": document_id,
        "user_id": user.id,
        "has_html": bool(content.html_content)
    })

    try:
        version = lineage.save_version(db, document_id, user.id, content)
    except DocflowError:
        raise
    except Exception as e:
        api_logger.error("Error saving document version", extra={"document_id": document_id, "error": str(e)})
        db.rollback()
        raise

    return SavedVersion.model_validate(version)


@router.get("/{document_id}/edit", response_model=List[Version])
def list_document_versions(
        document_id: str,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    return lineage.list_versions(db, document_id, user.id)
