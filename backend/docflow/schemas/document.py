# backend/docflow/schemas/document.py
from datetime import date
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from .base import BaseSchema, TimestampMixin
from ..utils.serialization import document_size


class DocumentBase(BaseSchema):
    title: str
    description: Optional[str] = None
    category: str
    tags: List[str] = Field(default_factory=list)
    is_featured: bool = False
    is_active: bool = True
    searchable_content: Optional[str] = None


class DocumentCreate(DocumentBase):
    file_name: str
    file_path: str
    file_size: int = Field(ge=0)
    file_type: str
    mime_type: str
    version: Optional[str] = None
    parent_document_id: Optional[str] = None


class DocumentUpdate(BaseSchema):
    """Partial metadata update; only fields present in the request are applied"""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None
    searchable_content: Optional[str] = None

    @model_validator(mode="after")
    def reject_null_for_required_columns(self):
        for field in ("title", "category", "tags", "is_featured", "is_active"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class Document(DocumentBase, TimestampMixin):
    id: str
    file_name: str
    file_path: str
    file_size: int = 0
    file_type: str
    mime_type: str
    version: Optional[str] = None
    parent_document_id: Optional[str] = None
    download_count: int = 0
    template_id: Optional[str] = None
    created_by: Optional[str] = None

    @field_validator("file_size", mode="before")
    @classmethod
    def narrow_file_size(cls, value):
        return document_size(value)

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, value):
        return value if isinstance(value, list) else []


class DocumentUpdateResult(Document):
    versionsUpdated: int


class DocumentDeleteResult(BaseSchema):
    message: str = "Document deleted successfully"
    file_path: str


class DocumentSearchParams(BaseSchema):
    searchQuery: Optional[str] = None
    category: Optional[str] = None
    fileType: Optional[str] = None
    featuredOnly: bool = False
    tags: List[str] = Field(default_factory=list)
    fromDate: Optional[date] = None
    toDate: Optional[date] = None
    sort: Optional[str] = None
    limit: int = Field(default=100, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


class FilterOptions(BaseSchema):
    categories: List[str] = Field(default_factory=list)
    fileTypes: List[str] = Field(default_factory=list)


class ConvertResult(BaseSchema):
    success: bool = True
    bridgeTemplateId: str


class DownloadUrl(BaseSchema):
    signedUrl: str
