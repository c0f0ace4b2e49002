# backend/app/services/search/embedding_service.py
"""
Embedding service for semantic search.

Wraps an EmbeddingProvider so callers never see provider exceptions: a
timeout, an error, or an open circuit comes back as a failed
``EmbeddingOutcome`` that the search orchestrator routes to its fallback.
A missing credential is the one failure that is raised, since it is a
configuration error rather than a runtime outage.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING, List, Optional

from app.services.search.circuit_breaker import EMBEDDING_CIRCUIT, CircuitBreaker
from app.services.search.config import SearchConfig, get_search_config
from app.services.search.embedding_provider import EmbeddingProvider, create_embedding_provider

if TYPE_CHECKING:
    from app.models.mentor import MentorProfile

logger = logging.getLogger(__name__)


class EmbeddingFailure(str, Enum):
    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"
    CIRCUIT_OPEN = "circuit_open"


@dataclass(frozen=True)
class EmbeddingOutcome:
    """Result of an embedding request: a vector or a failure kind."""

    vector: Optional[List[float]] = None
    failure: Optional[EmbeddingFailure] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None and bool(self.vector)

    @classmethod
    def success(cls, vector: List[float]) -> "EmbeddingOutcome":
        return cls(vector=vector)

    @classmethod
    def failed(cls, failure: EmbeddingFailure, detail: str = "") -> "EmbeddingOutcome":
        return cls(failure=failure, detail=detail)


class EmbeddingService:
    """Query-time and index-time embeddings with timeout and circuit breaking."""

    def __init__(
        self,
        provider: Optional[EmbeddingProvider] = None,
        config: Optional[SearchConfig] = None,
        circuit: Optional[CircuitBreaker] = None,
    ) -> None:
        self.config = config or get_search_config()
        self._provider = provider
        self.circuit = circuit or EMBEDDING_CIRCUIT

    @property
    def provider(self) -> EmbeddingProvider:
        """Lazy initialization of embedding provider."""
        if self._provider is None:
            self._provider = create_embedding_provider(self.config)
        return self._provider

    def ensure_configured(self) -> None:
        self.provider.ensure_configured()

    async def embed_query(self, query: str) -> EmbeddingOutcome:
        """Embed a search query, bounded by the configured timeout."""
        normalized = query.lower().strip()
        return await self._embed(normalized)

    async def embed_mentor(self, mentor: "MentorProfile") -> EmbeddingOutcome:
        """Embed a mentor profile for the similarity index."""
        return await self._embed(self.mentor_text(mentor))

    @staticmethod
    def mentor_text(mentor: "MentorProfile") -> str:
        parts = [mentor.full_name, mentor.category or "", mentor.bio or ""]
        return "\n".join(part.strip() for part in parts if part and part.strip())

    async def _embed(self, text: str) -> EmbeddingOutcome:
        self.ensure_configured()

        if not self.circuit.allow():
            logger.warning("Embedding circuit is OPEN, skipping provider call")
            return EmbeddingOutcome.failed(EmbeddingFailure.CIRCUIT_OPEN)

        try:
            vector = await asyncio.wait_for(
                self.provider.embed(text), timeout=self.config.embedding_timeout_s
            )
        except asyncio.TimeoutError:
            self.circuit.record_failure()
            logger.warning(
                "Embedding request timed out after %.2fs", self.config.embedding_timeout_s
            )
            return EmbeddingOutcome.failed(EmbeddingFailure.TIMEOUT)
        except Exception as e:
            # Any provider-side failure degrades to the keyword path
            self.circuit.record_failure()
            logger.error(f"Embedding generation failed: {e}")
            return EmbeddingOutcome.failed(EmbeddingFailure.PROVIDER_ERROR, str(e))

        if not vector:
            self.circuit.record_failure()
            return EmbeddingOutcome.failed(EmbeddingFailure.PROVIDER_ERROR, "empty embedding")

        expected = self.provider.get_dimensions()
        if len(vector) != expected:
            self.circuit.record_failure()
            logger.error(
                "Embedding from %s has %d dimensions, expected %d",
                self.provider.get_model_name(),
                len(vector),
                expected,
            )
            return EmbeddingOutcome.failed(
                EmbeddingFailure.PROVIDER_ERROR, f"dimension mismatch: {len(vector)} != {expected}"
            )

        self.circuit.record_success()
        return EmbeddingOutcome.success(list(vector))
