# backend/docflow/api/__init__.py
from .documents import router as documents_router
from .bridge import router as bridge_router
from .sessions import router as sessions_router
from .download_logs import router as download_logs_router

__all__ = ["documents_router", "bridge_router", "sessions_router", "download_logs_router"]
