# backend/docflow/errors.py
from typing import Optional

INTERNAL_ERROR_MESSAGE = "Internal server error"


class DocflowError(Exception):
    """Base class for every failure surfaced to API callers"""
    status_code = 500
    default_message = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(DocflowError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(DocflowError):
    status_code = 403
    default_message = "Admin access required"


class NotFound(DocflowError):
    status_code = 404
    default_message = "Document not found"


class ValidationError(DocflowError):
    status_code = 400
    default_message = "Invalid request"


class InternalError(DocflowError):
    pass


class BridgeNotConfigured(DocflowError):
    default_message = "Google Bridge not configured in environment"


class BridgeError(DocflowError):
    def __init__(self, bridge_message: str):
        self.bridge_message = bridge_message
        super().__init__(f"Bridge Error: {bridge_message}")


class BridgeMalformedResponse(DocflowError):
    default_message = "Bridge returned a malformed response"


class StorageError(DocflowError):
    default_message = "Storage operation failed"


class SignedUrlFailed(StorageError):
    default_message = "Failed to generate download URL"


# Session orchestration failures

class MissingFileId(BridgeMalformedResponse):
    default_message = "Failed to get File ID from Bridge"


class EmptyExport(BridgeMalformedResponse):
    default_message = "Bridge returned empty DOCX data"


class SessionStartFailed(InternalError):
    default_message = "Failed to start editing session"


class NotFoundOrUnauthorized(NotFound):
    default_message = "Version not found or unauthorized"


class NoBridgeFile(ValidationError):
    default_message = "No Google Drive file associated with this version"


class SessionAlreadyFinished(ValidationError):
    status_code = 409
    default_message = "Editing session already finished"


class UploadFailed(StorageError):
    def __init__(self, storage_message: str):
        super().__init__(f"Upload failed: {storage_message}")


class DownloadFailed(StorageError):
    def __init__(self, storage_message: str):
        super().__init__(f"Failed to download file from storage: {storage_message}")
