# backend/app/services/search/mentor_search_service.py
"""
Mentor search orchestration.

Two explicit paths:
1. Semantic: embed the query, rank mentors by cosine similarity above the
   match threshold.
2. Fallback: case-insensitive substring match on mentor bios, flagged with
   ``fallback=True`` so clients can tell users results are keyword based.

The fallback is chosen from typed outcomes (EmbeddingOutcome, a failed
similarity query), never by letting provider exceptions escape.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.constants import MAX_SEARCH_QUERY_LENGTH
from app.core.exceptions import NotFoundException, RepositoryException, ValidationException
from app.models.mentor import MentorProfile
from app.monitoring.prometheus_metrics import prometheus_metrics
from app.repositories.factory import RepositoryFactory
from app.services.base import BaseService
from app.services.search.config import SearchConfig, get_search_config
from app.services.search.embedding_service import EmbeddingService

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "AI search not available, showing keyword results"


@dataclass(frozen=True)
class MentorSearchHit:
    mentor: MentorProfile
    similarity: Optional[float] = None


@dataclass
class MentorSearchResult:
    hits: List[MentorSearchHit] = field(default_factory=list)
    fallback: bool = False
    message: Optional[str] = None
    fallback_reason: Optional[str] = None


class MentorSearchService(BaseService):
    """Resolves a free-text query into a ranked mentor list."""

    def __init__(
        self,
        db: Session,
        embedding_service: Optional[EmbeddingService] = None,
        config: Optional[SearchConfig] = None,
    ) -> None:
        super().__init__(db)
        self.config = config or get_search_config()
        self.embedding_service = embedding_service or EmbeddingService(config=self.config)
        self.repository = RepositoryFactory.create_mentor_repository(db)

    @BaseService.measure_operation("search_mentors")
    async def search(self, query: Optional[str], limit: Optional[int] = None) -> MentorSearchResult:
        """
        Search mentors by free text.

        Raises:
            ValidationException: empty or oversized query (before any provider call)
            ProviderNotConfiguredException: embeddings selected but no credential set
        """
        text = (query or "").strip()
        if not text:
            raise ValidationException("Query is required", details={"field": "query"})
        if len(text) > MAX_SEARCH_QUERY_LENGTH:
            raise ValidationException(
                f"Query must be at most {MAX_SEARCH_QUERY_LENGTH} characters",
                details={"field": "query"},
            )
        capped = self.config.clamp_limit(limit)

        outcome = await self.embedding_service.embed_query(text)
        if outcome.ok:
            try:
                matches = await asyncio.to_thread(
                    self.repository.similarity_search,
                    outcome.vector,
                    self.config.match_threshold,
                    capped,
                )
            except RepositoryException as exc:
                logger.warning(f"Similarity query failed, using keyword fallback: {exc}")
                self.db.rollback()
                return await self._fallback(text, capped, reason="similarity_query_failed")

            prometheus_metrics.record_search("semantic")
            self.log_operation("search_mentors", path="semantic", results=len(matches))
            return MentorSearchResult(
                hits=[MentorSearchHit(mentor=m, similarity=round(s, 4)) for m, s in matches]
            )

        reason = outcome.failure.value if outcome.failure else "empty_embedding"
        return await self._fallback(text, capped, reason=reason)

    async def _fallback(self, text: str, limit: int, *, reason: str) -> MentorSearchResult:
        mentors = await asyncio.to_thread(self.repository.keyword_search, text, limit)
        prometheus_metrics.record_search("fallback", reason)
        self.log_operation("search_mentors", path="fallback", reason=reason, results=len(mentors))
        return MentorSearchResult(
            hits=[MentorSearchHit(mentor=m) for m in mentors],
            fallback=True,
            message=FALLBACK_MESSAGE,
            fallback_reason=reason,
        )

    @BaseService.measure_operation("refresh_mentor_embedding")
    async def refresh_mentor_embedding(self, mentor_id: str) -> bool:
        """Recompute and store a mentor's profile embedding. False when the provider failed."""
        mentor = self.repository.get_by_id(mentor_id, load_relationships=False)
        if mentor is None:
            raise NotFoundException("Mentor not found", details={"mentor_id": mentor_id})

        outcome = await self.embedding_service.embed_mentor(mentor)
        if not outcome.ok:
            logger.warning(
                "Embedding refresh for mentor %s skipped: %s", mentor_id, outcome.failure
            )
            return False

        with self.transaction():
            mentor.embedding = outcome.vector
        return True
