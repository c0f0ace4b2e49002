# backend/app/repositories/mentor_repository.py
"""
Mentor catalog read path.

Two retrieval strategies back mentor search:
- ``similarity_search``: pgvector cosine similarity on PostgreSQL, computed
  in Python over stored vectors on other dialects (SQLite in tests).
- ``keyword_search``: case-insensitive substring match on the bio.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.mentor import MentorProfile
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class MentorRepository(BaseRepository[MentorProfile]):
    """Repository for mentor profiles."""

    def __init__(self, db: Session):
        super().__init__(db, MentorProfile)
        self.logger = logging.getLogger(__name__)

    def get_active(self, mentor_id: str) -> Optional[MentorProfile]:
        mentor = self.get_by_id(mentor_id, load_relationships=False)
        if mentor is None or not mentor.is_active:
            return None
        return mentor

    def count_active(self) -> int:
        return self.count(is_active=True)

    def keyword_search(self, query: str, limit: int) -> List[MentorProfile]:
        """Active mentors whose bio contains ``query`` (case-insensitive)."""
        pattern = f"%{_escape_like(query.strip())}%"
        return self._execute_query(
            self.db.query(MentorProfile)
            .filter(MentorProfile.is_active.is_(True))
            .filter(MentorProfile.bio.ilike(pattern, escape="\\"))
            .order_by(MentorProfile.full_name.asc())
            .limit(limit)
        )

    def similarity_search(
        self, embedding: Sequence[float], threshold: float, limit: int
    ) -> List[Tuple[MentorProfile, float]]:
        """
        Mentors with cosine similarity >= ``threshold``, best match first.

        Raises RepositoryException when the similarity query itself fails.
        """
        if self.dialect_name == "postgresql":
            return self._pgvector_search(embedding, threshold, limit)
        return self._in_memory_search(embedding, threshold, limit)

    def _pgvector_search(
        self, embedding: Sequence[float], threshold: float, limit: int
    ) -> List[Tuple[MentorProfile, float]]:
        embedding_str = "[" + ",".join(str(x) for x in embedding) + "]"
        query = text(
            """
            SELECT id, 1 - (embedding <=> CAST(:embedding AS vector)) AS similarity
            FROM mentor_profiles
            WHERE is_active
              AND embedding IS NOT NULL
              AND 1 - (embedding <=> CAST(:embedding AS vector)) >= :threshold
            ORDER BY embedding <=> CAST(:embedding AS vector)
            LIMIT :limit
            """
        )
        try:
            rows = self.db.execute(
                query, {"embedding": embedding_str, "threshold": threshold, "limit": limit}
            ).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Vector search failed: {str(e)}")
            raise RepositoryException(f"Vector search failed: {str(e)}")

        scores = {row.id: float(row.similarity) for row in rows}
        if not scores:
            return []
        mentors = self.db.query(MentorProfile).filter(MentorProfile.id.in_(list(scores))).all()
        by_id = {mentor.id: mentor for mentor in mentors}
        return [(by_id[mid], score) for mid, score in scores.items() if mid in by_id]

    def _in_memory_search(
        self, embedding: Sequence[float], threshold: float, limit: int
    ) -> List[Tuple[MentorProfile, float]]:
        mentors = self._execute_query(
            self.db.query(MentorProfile).filter(
                MentorProfile.is_active.is_(True), MentorProfile.embedding.isnot(None)
            )
        )
        scored = [
            (mentor, cosine_similarity(embedding, list(mentor.embedding)))
            for mentor in mentors
            if mentor.embedding
        ]
        matches = [item for item in scored if item[1] >= threshold]
        matches.sort(key=lambda item: item[1], reverse=True)
        return matches[:limit]
