# backend/docflow/schemas/__init__.py
from .document import (
    Document, DocumentCreate, DocumentUpdate, DocumentUpdateResult, DocumentDeleteResult,
    DocumentSearchParams, FilterOptions, ConvertResult, DownloadUrl
)
from .version import Version, VersionContent, SavedVersion
from .session import SessionCreate, SessionStarted, SessionFinished, TemplateUploaded
from .download_log import DownloadLog, DownloadLogCreate

__all__ = [
    "Document", "DocumentCreate", "DocumentUpdate", "DocumentUpdateResult", "DocumentDeleteResult",
    "DocumentSearchParams", "FilterOptions", "ConvertResult", "DownloadUrl",
    "Version", "VersionContent", "SavedVersion",
    "SessionCreate", "SessionStarted", "SessionFinished", "TemplateUploaded",
    "DownloadLog", "DownloadLogCreate"
]
