# backend/docflow/schemas/download_log.py
from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, Field

from .base import BaseSchema


class DownloadLogCreate(BaseSchema):
    document_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    context: Optional[str] = None
    metadata: Optional[Any] = None


class DownloadedDocument(BaseSchema):
    id: str
    title: str
    file_name: str


class DownloadLog(BaseSchema):
    id: str
    document_id: str
    user_id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    downloaded_at: Optional[datetime] = None
    context: Optional[str] = None
    # The ORM attribute is log_metadata; "metadata" is taken on declarative classes
    metadata: Optional[Any] = Field(default=None, validation_alias=AliasChoices("log_metadata", "metadata"))
    documents: Optional[DownloadedDocument] = Field(
        default=None,
        validation_alias=AliasChoices("document", "documents")
    )
