# backend/app/models/mentor.py
"""
Mentor catalog model.

A mentor profile shares its primary key with the mentor's user row. The
``embedding`` column holds the profile's semantic vector; PostgreSQL stores
it with pgvector, SQLite (tests, local tooling) stores the raw list as JSON.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from pgvector.sqlalchemy import Vector

from ..core.config import settings
from ..database import Base


class MentorProfile(Base):
    """Public, searchable profile of a mentor."""

    __tablename__ = "mentor_profiles"

    id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    full_name = Column(String(120), nullable=False)
    username = Column(String(60), unique=True, nullable=True)
    bio = Column(Text, nullable=True)
    category = Column(String(80), nullable=True, index=True)
    pricing = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    embedding = Column(
        Vector(settings.embedding_dimensions).with_variant(JSON(none_as_null=True), "sqlite"),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="mentor_profile")

    __table_args__ = (CheckConstraint("pricing >= 0", name="ck_mentor_profiles_pricing"),)

    def __repr__(self) -> str:
        return f"<MentorProfile {self.id} {self.username or self.full_name}>"
