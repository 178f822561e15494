# backend/docflow/api/deps.py
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..errors import Forbidden, Unauthorized
from ..models import Profile, UserRole
from ..services.bridge import BridgeClient, get_bridge_client
from ..services.search import SearchAggregator, search_aggregator
from ..services.sessions import SessionOrchestrator
from ..services.storage import ObjectStorage, object_storage


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str = UserRole.USER.value
    can_upload_documents: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def can_upload(self) -> bool:
        return self.is_admin or (self.role == UserRole.SUBADMIN.value and self.can_upload_documents)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> CurrentUser:
    """Resolve the caller from the identity header set by the upstream identity provider"""
    user_id: Optional[str] = request.headers.get(settings.AUTH_USER_HEADER)
    if not user_id or not user_id.strip():
        raise Unauthorized()

    user_id = user_id.strip()
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if not profile:
        return CurrentUser(id=user_id)
    return CurrentUser(
        id=user_id,
        role=profile.role or UserRole.USER.value,
        can_upload_documents=bool(profile.can_upload_documents)
    )


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise Forbidden("Admin access required")
    return user


def require_uploader(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.can_upload:
        raise Forbidden("Permission required: can_upload_documents")
    return user


def get_storage() -> ObjectStorage:
    return object_storage


def get_bridge() -> BridgeClient:
    return get_bridge_client()


def get_orchestrator(
        bridge: BridgeClient = Depends(get_bridge),
        storage: ObjectStorage = Depends(get_storage)
) -> SessionOrchestrator:
    return SessionOrchestrator(bridge=bridge, storage=storage)


def get_search() -> SearchAggregator:
    return search_aggregator
