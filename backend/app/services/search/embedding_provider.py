# backend/app/services/search/embedding_provider.py
"""
Embedding provider abstraction for semantic search.
Supports OpenAI (production) and mock (testing) providers.
Uses strict timeouts to fail fast under load (no retries).
"""
from __future__ import annotations

import hashlib
import logging
import random
from typing import List, Optional, Protocol

from openai import AsyncOpenAI

from app.core.config import settings
from app.core.exceptions import ProviderNotConfiguredException
from app.services.search.config import SearchConfig, get_search_config

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """Interface for embedding providers - enables easy swapping."""

    def ensure_configured(self) -> None:
        """Raise ProviderNotConfiguredException when a credential is missing."""
        ...

    async def embed(self, text: str) -> List[float]:
        """Generate embedding vector for text. May raise on provider failure."""
        ...

    def get_model_name(self) -> str:
        ...

    def get_dimensions(self) -> int:
        ...


class OpenAIEmbeddingProvider:
    """
    Production embedding provider using OpenAI API.

    IMPORTANT: Uses AsyncOpenAI for FastAPI async compatibility.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "text-embedding-3-small",
        dimensions: int = 1536,
        timeout_s: float = 2.0,
        max_retries: int = 0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.dimensions = dimensions
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self._client: Optional[AsyncOpenAI] = None

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise ProviderNotConfiguredException("OpenAI embeddings", "OPENAI_API_KEY")

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy initialization of OpenAI client with strict timeouts."""
        if self._client is None:
            self.ensure_configured()
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                timeout=self.timeout_s,
                max_retries=self.max_retries,
            )
        return self._client

    async def embed(self, text: str) -> List[float]:
        response = await self.client.embeddings.create(
            model=self.model,
            input=text,
            dimensions=self.dimensions,
        )
        return list(response.data[0].embedding)

    def get_model_name(self) -> str:
        return self.model

    def get_dimensions(self) -> int:
        return self.dimensions


class MockEmbeddingProvider:
    """
    Deterministic mock embeddings for testing and local development.

    Same input always produces the same unit vector; different inputs
    produce distinguishable vectors.
    """

    def __init__(self, dimensions: int = 1536) -> None:
        self.dimensions = dimensions

    def ensure_configured(self) -> None:
        return None

    async def embed(self, text: str) -> List[float]:
        return self.generate(text)

    def generate(self, text: str) -> List[float]:
        """Create deterministic embedding from text hash."""
        text_hash = hashlib.sha256(text.lower().strip().encode()).hexdigest()
        rng = random.Random(int(text_hash[:8], 16))
        embedding = [rng.gauss(0, 1) for _ in range(self.dimensions)]
        magnitude = sum(x**2 for x in embedding) ** 0.5
        return [x / magnitude for x in embedding]

    def get_model_name(self) -> str:
        return "mock-embedding-v1"

    def get_dimensions(self) -> int:
        return self.dimensions


def create_embedding_provider(config: Optional[SearchConfig] = None) -> EmbeddingProvider:
    """
    Factory function to create the appropriate embedding provider.

    ``EMBEDDING_PROVIDER=mock`` selects the deterministic provider; anything
    else uses OpenAI with ``OPENAI_API_KEY`` (checked when search runs).
    """
    config = config or get_search_config()

    if config.embedding_provider == "mock":
        logger.info("Using mock embedding provider")
        return MockEmbeddingProvider(dimensions=config.embedding_dimensions)

    logger.info(f"Using OpenAI embedding provider: {config.embedding_model}")
    return OpenAIEmbeddingProvider(
        api_key=settings.openai_api_key_value,
        model=config.embedding_model,
        dimensions=config.embedding_dimensions,
        timeout_s=config.embedding_timeout_s,
        max_retries=config.max_retries,
    )
