# backend/docflow/schemas/session.py
from pydantic import Field

from .base import BaseSchema


class SessionCreate(BaseSchema):
    documentId: str = Field(min_length=1)
    templateFileId: str = Field(min_length=1)


class SessionStarted(BaseSchema):
    success: bool = True
    editUrl: str
    versionId: str


class SessionFinished(BaseSchema):
    success: bool = True
    fileUrl: str


class TemplateUploaded(BaseSchema):
    success: bool = True
    fileId: str
