# backend/app/repositories/user_repository.py
"""
User Repository for the MatePeak platform.

Lookups used to resolve callers and notification recipients, plus the role
counts shown on the admin dashboard.
"""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User data access."""

    def __init__(self, db: Session):
        super().__init__(db, User)
        self.logger = logging.getLogger(__name__)

    def get_active(self, user_id: str) -> Optional[User]:
        """Return the user only if the account is active."""
        if not user_id:
            return None
        user = self.get_by_id(user_id, load_relationships=False)
        if user is None or not user.is_active:
            return None
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        return self.find_one_by(email=email.strip().lower())

    def get_many(self, user_ids: Iterable[str]) -> List[User]:
        ids = [uid for uid in set(user_ids) if uid]
        if not ids:
            return []
        return self._execute_query(self.db.query(User).filter(User.id.in_(ids)))

    def count_by_role(self) -> Dict[str, int]:
        rows = self.db.query(User.role, func.count(User.id)).group_by(User.role).all()
        return {role: int(total) for role, total in rows}
