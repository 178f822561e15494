# backend/docflow/schemas/version.py
from typing import Any, Optional

from pydantic import field_validator, model_validator

from .base import BaseSchema, TimestampMixin
from ..utils.serialization import version_size


class VersionContent(BaseSchema):
    """Edited content for a saved version"""
    html_content: Optional[str] = None
    pdf_text_content: Optional[str] = None
    pdf_annotations: Optional[Any] = None
    version_name: Optional[str] = None

    @model_validator(mode="after")
    def one_payload_kind(self):
        has_html = bool(self.html_content)
        has_pdf = bool(self.pdf_text_content) or self.pdf_annotations is not None
        if has_html and has_pdf:
            raise ValueError("html_content and PDF content are mutually exclusive")
        return self


class Version(BaseSchema, TimestampMixin):
    id: str
    original_document_id: str
    user_id: str
    version_number: int
    version_name: Optional[str] = None
    html_content: Optional[str] = None
    pdf_text_content: Optional[str] = None
    pdf_annotations: Optional[Any] = None
    exported_file_path: Optional[str] = None
    exported_file_size: Optional[str] = None
    exported_mime_type: Optional[str] = None
    original_file_type: str
    is_draft: bool
    google_drive_file_id: Optional[str] = None
    google_edit_link: Optional[str] = None

    @field_validator("exported_file_size", mode="before")
    @classmethod
    def narrow_exported_size(cls, value):
        return version_size(value)


class SavedVersion(Version):
    message: str = "Document version saved successfully"
