# backend/docflow/models/profile.py
import enum

from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.sql import func

from ..database import Base


class UserRole(str, enum.Enum):
    USER = "user"
    SUBADMIN = "subadmin"
    ADMIN = "admin"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, server_default=UserRole.USER.value)
    can_upload_documents = Column(Boolean, nullable=False, server_default='0')
    created_at = Column(DateTime(timezone=True), server_default=func.now())
