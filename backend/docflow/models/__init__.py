# backend/docflow/models/__init__.py
from ..database import Base
from .document import Document
from .version import UserDocumentVersion
from .download_log import DownloadLog
from .profile import Profile, UserRole

__all__ = [
    "Base",
    "Document",
    "UserDocumentVersion",
    "DownloadLog",
    "Profile",
    "UserRole"
]
