# backend/app/services/search/__init__.py
"""
Mentor search services.

Embedding-backed similarity search with a keyword fallback.
"""

from app.services.search.circuit_breaker import EMBEDDING_CIRCUIT, CircuitBreaker, CircuitState
from app.services.search.config import SearchConfig, get_search_config
from app.services.search.embedding_provider import (
    EmbeddingProvider,
    MockEmbeddingProvider,
    OpenAIEmbeddingProvider,
    create_embedding_provider,
)
from app.services.search.embedding_service import (
    EmbeddingFailure,
    EmbeddingOutcome,
    EmbeddingService,
)
from app.services.search.mentor_search_service import (
    FALLBACK_MESSAGE,
    MentorSearchHit,
    MentorSearchResult,
    MentorSearchService,
)

__all__ = [
    # Config
    "SearchConfig",
    "get_search_config",
    # Circuit breakers
    "EMBEDDING_CIRCUIT",
    "CircuitBreaker",
    "CircuitState",
    # Embeddings
    "EmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "MockEmbeddingProvider",
    "create_embedding_provider",
    "EmbeddingFailure",
    "EmbeddingOutcome",
    "EmbeddingService",
    # Main service
    "FALLBACK_MESSAGE",
    "MentorSearchHit",
    "MentorSearchResult",
    "MentorSearchService",
]
