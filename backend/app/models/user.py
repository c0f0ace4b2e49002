# backend/app/models/user.py
"""
User model for the MatePeak platform.

Identity is issued by an external provider; this row is the local profile
the API resolves a bearer token to. The ``role`` column is read once per
request to build the caller's principal.
"""

import logging

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName
from ..database import Base

logger = logging.getLogger(__name__)


class User(Base):
    """
    Authenticated account, either a student, a mentor or an admin.

    Attributes:
        id: ULID primary key (also the JWT ``sub`` claim)
        email: Unique email address used for notifications
        full_name: Display name
        role: One of ``student``, ``mentor``, ``admin``
        timezone: IANA zone used when rendering session times in emails
        is_active: Inactive users cannot authenticate
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(120), nullable=False)
    role = Column(String(20), nullable=False, default=RoleName.STUDENT.value, index=True)
    timezone = Column(String(50), nullable=False, default="UTC")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    mentor_profile = relationship(
        "MentorProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("role IN ('student', 'mentor', 'admin')", name="ck_users_role"),
    )

    @property
    def is_mentor(self) -> bool:
        return self.role == RoleName.MENTOR.value

    @property
    def is_student(self) -> bool:
        return self.role == RoleName.STUDENT.value

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    def __repr__(self) -> str:
        return f"<User {self.id} role={self.role}>"
