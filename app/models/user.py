"""
User model for recruiter accounts.

The role decides which lifecycle actions a user may perform; see
app/core/permissions.py for the capability mapping.
"""

import enum
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Enum
from app.core.database import Base
from app.core.timeutils import utcnow


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    RECRUITER = "recruiter"
    BRANCH_MANAGER = "branch_manager"
    REGIONAL_MANAGER = "regional_manager"
    VIEWER = "viewer"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=True)
    role = Column(Enum(UserRole, name="user_role"), default=UserRole.RECRUITER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
