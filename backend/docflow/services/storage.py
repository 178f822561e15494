# backend/docflow/services/storage.py
from datetime import timedelta
from io import BytesIO
from typing import Optional

from minio import Minio
from minio.error import MinioException, S3Error
from urllib3.exceptions import HTTPError as TransportError

from ..config import settings
from ..errors import DownloadFailed, SignedUrlFailed, StorageError, UploadFailed
from ..utils.logging import service_logger


class ObjectStorage:
    """Object storage for document blobs, backed by one MinIO/S3 bucket.

    Mirrors the storage contract used by the orchestrator: ``write`` returns the
    stored path, ``read`` returns the object bytes, ``signed_url`` returns a
    time-limited download URL. Failures are raised as ``StorageError`` kinds.
    """

    def __init__(self, bucket: Optional[str] = None, client: Optional[Minio] = None):
        self.bucket = bucket or settings.MINIO_BUCKET
        self._client = client

    @property
    def client(self) -> Minio:
        """Get or create the MinIO client (lazy initialization)"""
        if self._client is None:
            self._client = Minio(
                endpoint=settings.MINIO_ENDPOINT,
                access_key=settings.MINIO_ACCESS_KEY,
                secret_key=settings.MINIO_SECRET_KEY,
                secure=settings.MINIO_SECURE,
            )
            service_logger.info("MinIO client initialized", extra={
                "endpoint": settings.MINIO_ENDPOINT,
                "bucket": self.bucket
            })
        return self._client

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        try:
            self.client.put_object(
                bucket_name=self.bucket,
                object_name=path,
                data=BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
        except (MinioException, TransportError) as e:
            service_logger.error("Object upload failed", extra={"path": path, "error": str(e)})
            raise UploadFailed(_describe(e)) from e

        service_logger.info("Uploaded object", extra={"path": path, "size": len(data)})
        return path

    def read(self, path: str) -> bytes:
        response = None
        try:
            response = self.client.get_object(self.bucket, path)
            return response.read()
        except (MinioException, TransportError) as e:
            service_logger.error("Object download failed", extra={"path": path, "error": str(e)})
            raise DownloadFailed(_describe(e)) from e
        finally:
            if response:
                response.close()
                response.release_conn()

    def signed_url(self, path: str, ttl_seconds: Optional[int] = None) -> str:
        expires = ttl_seconds or settings.SIGNED_URL_TTL_SECONDS
        try:
            url = self.client.presigned_get_object(
                bucket_name=self.bucket,
                object_name=path,
                expires=timedelta(seconds=expires),
            )
        except (MinioException, TransportError) as e:
            service_logger.error("Signed URL generation failed", extra={"path": path, "error": str(e)})
            raise SignedUrlFailed() from e

        if not url:
            raise SignedUrlFailed()
        return url

    def delete(self, path: str) -> None:
        try:
            self.client.remove_object(self.bucket, path)
        except S3Error as e:
            if e.code == "NoSuchKey":
                return  # Already gone
            raise StorageError(f"Delete failed: {_describe(e)}") from e
        except (MinioException, TransportError) as e:
            raise StorageError(f"Delete failed: {_describe(e)}") from e
        service_logger.info("Deleted object", extra={"path": path})


def _describe(error: Exception) -> str:
    if isinstance(error, S3Error):
        return error.message or error.code
    return str(error)


object_storage = ObjectStorage()
