# backend/docflow/config.py
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class BridgeConfig:
    """Connection details for the document-conversion bridge"""
    url: Optional[str]
    secret: Optional[str]
    timeout_seconds: float = 30.0
    folder_id: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.secret)


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./docflow.db"  # Default if not in .env

    # Local working directory (logs)
    STORAGE_PATH: Path = Path("storage")

    # Document-conversion bridge
    BRIDGE_URL: Optional[str] = None
    BRIDGE_SECRET: Optional[str] = None
    BRIDGE_TIMEOUT_SECONDS: float = 30.0
    BRIDGE_FOLDER_ID: Optional[str] = None
    BRIDGE_EDIT_URL_TEMPLATE: str = "https://docs.google.com/document/d/{file_id}/edit"

    # Object storage
    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_ACCESS_KEY: str = "minioadmin"
    MINIO_SECRET_KEY: str = "minioadmin"
    MINIO_SECURE: bool = False
    MINIO_BUCKET: str = "documents"
    SIGNED_URL_TTL_SECONDS: int = 3600

    # Identity (set by the upstream identity provider / gateway)
    AUTH_USER_HEADER: str = "X-User-Id"

    # Search
    SEARCH_RESULT_LIMIT: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def model_post_init(self, __context) -> None:
        """Post initialization hook to normalize paths"""
        if isinstance(self.STORAGE_PATH, str):
            self.STORAGE_PATH = Path(self.STORAGE_PATH)
        self.STORAGE_PATH.mkdir(parents=True, exist_ok=True)

    @property
    def bridge(self) -> BridgeConfig:
        return BridgeConfig(
            url=self.BRIDGE_URL,
            secret=self.BRIDGE_SECRET,
            timeout_seconds=self.BRIDGE_TIMEOUT_SECONDS,
            folder_id=self.BRIDGE_FOLDER_ID,
        )


settings = Settings()
