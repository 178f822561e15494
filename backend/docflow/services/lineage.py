# backend/docflow/services/lineage.py
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import InternalError, NotFound
from ..models import Document, UserDocumentVersion
from ..schemas.document import DocumentUpdate
from ..schemas.version import VersionContent
from ..utils.logging import service_logger

MAX_VERSION_INSERT_ATTEMPTS = 3


def root_id(document: Document) -> str:
    """Family root of a document: its parent if it has one, else itself"""
    return document.parent_document_id or document.id


@dataclass(frozen=True)
class DocumentPatch:
    """Metadata fields explicitly supplied by a caller.

    A field missing from ``values`` is left untouched; a field present with
    ``None`` is cleared.
    """
    FIELDS = (
        "title", "description", "category", "tags",
        "is_featured", "is_active", "searchable_content",
    )

    values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        unknown = set(self.values) - set(self.FIELDS)
        if unknown:
            raise ValueError(f"Unsupported metadata fields: {sorted(unknown)}")

    @classmethod
    def from_update(cls, update_request: DocumentUpdate) -> "DocumentPatch":
        return cls(dict(update_request.model_dump(exclude_unset=True)))

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def __bool__(self) -> bool:
        return bool(self.values)


def family_filter(family_root_id: str):
    return or_(Document.id == family_root_id, Document.parent_document_id == family_root_id)


def get_document(db: Session, document_id: str) -> Document:
    document = db.query(Document).filter(Document.id == document_id).first()
    if not document:
        raise NotFound("Document not found")
    return document


def update_metadata(db: Session, document_id: str, patch: DocumentPatch) -> Tuple[Document, int]:
    """Apply a metadata patch to every document of the family and re-read the requested one"""
    document = get_document(db, document_id)
    family_root_id = root_id(document)

    values: Dict[str, Any] = dict(patch.values)
    values["updated_at"] = func.now()

    result = db.execute(
        update(Document)
        .where(family_filter(family_root_id))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    touched = result.rowcount
    db.commit()

    # A concurrent delete between the update and this read must not look like success
    refreshed = db.execute(
        select(Document)
        .where(Document.id == document_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if refreshed is None:
        service_logger.warning("Document vanished after family update", extra={
            "document_id": document_id,
            "root_id": family_root_id
        })
        raise NotFound("Document not found")

    service_logger.info("Updated document family metadata", extra={
        "document_id": document_id,
        "root_id": family_root_id,
        "fields": sorted(patch.values.keys()),
        "rows_touched": touched
    })
    return refreshed, touched


def next_version_number(db: Session, document_id: str, user_id: str) -> int:
    current = db.query(func.max(UserDocumentVersion.version_number)).filter(
        UserDocumentVersion.original_document_id == document_id,
        UserDocumentVersion.user_id == user_id
    ).scalar()
    return (current or 0) + 1


def insert_version(
        db: Session,
        document_id: str,
        user_id: str,
        build: Callable[[int], Dict[str, Any]]
) -> UserDocumentVersion:
    """Insert a version under the next free number for (document, user).

    The unique constraint on (document, user, version_number) rejects a number
    taken by a concurrent insert; the number is then recomputed.
    """
    for attempt in range(1, MAX_VERSION_INSERT_ATTEMPTS + 1):
        number = next_version_number(db, document_id, user_id)
        version = UserDocumentVersion(
            original_document_id=document_id,
            user_id=user_id,
            version_number=number,
            **build(number)
        )
        try:
            with db.begin_nested():
                db.add(version)
            return version
        except IntegrityError:
            service_logger.warning("Version number conflict, retrying", extra={
                "document_id": document_id,
                "user_id": user_id,
                "version_number": number,
                "attempt": attempt
            })

    raise InternalError("Could not allocate a version number")


def save_version(db: Session, document_id: str, user_id: str, content: VersionContent) -> UserDocumentVersion:
    """Store edited content as a finalized (non-draft) version"""
    document = get_document(db, document_id)

    version = insert_version(db, document.id, user_id, lambda number: {
        "version_name": content.version_name or None,
        "html_content": content.html_content or None,
        "pdf_text_content": content.pdf_text_content or None,
        "pdf_annotations": content.pdf_annotations,
        "original_file_type": document.file_type,
        "is_draft": False,
    })
    db.commit()
    db.refresh(version)

    service_logger.info("Saved document version", extra={
        "document_id": document_id,
        "version_id": version.id,
        "version_number": version.version_number
    })
    return version


def list_versions(db: Session, document_id: str, user_id: str) -> List[UserDocumentVersion]:
    return db.query(UserDocumentVersion).filter(
        UserDocumentVersion.original_document_id == document_id,
        UserDocumentVersion.user_id == user_id
    ).order_by(UserDocumentVersion.version_number.desc()).all()


def list_family(db: Session, document_id: str) -> List[Document]:
    """Root document and all its children, newest first"""
    document = get_document(db, document_id)
    return db.query(Document).filter(
        family_filter(root_id(document))
    ).order_by(Document.created_at.desc()).all()


def next_family_version_label(db: Session, parent_id: str) -> Tuple[str, str]:
    """Resolve the root a new upload attaches to and the version label it gets"""
    parent = db.query(Document).filter(Document.id == parent_id).first()
    if not parent:
        raise NotFound("Parent document not found")

    family_root_id = root_id(parent)
    labels = db.query(Document.version).filter(family_filter(family_root_id)).all()

    numbers = []
    for (label,) in labels:
        try:
            numbers.append(float(label or "1.0"))
        except ValueError:
            continue

    highest = max(numbers) if numbers else 0.0
    return family_root_id, f"{highest + 0.1:.1f}"


def create_document(db: Session, values: Dict[str, Any], created_by: Optional[str]) -> Document:
    if not values.get("version"):
        values["version"] = "1.0"
    parent_id = values.get("parent_document_id")
    if parent_id:
        # Children always hang off the root, never off another child
        parent = get_document(db, parent_id)
        values["parent_document_id"] = root_id(parent)

    document = Document(**values, created_by=created_by)
    db.add(document)
    db.commit()
    db.refresh(document)

    service_logger.info("Created document", extra={
        "document_id": document.id,
        "parent_document_id": document.parent_document_id
    })
    return document


def delete_document(db: Session, document_id: str) -> str:
    """Delete a document row and return the storage path of its blob.

    Versions and download logs go with it through the store's cascades;
    children of a deleted root become roots themselves.
    """
    document = get_document(db, document_id)
    file_path = document.file_path

    db.delete(document)
    db.commit()

    service_logger.info("Deleted document", extra={
        "document_id": document_id,
        "file_path": file_path
    })
    return file_path
