# backend/app/services/search/config.py
"""
Configuration for mentor search.

Values come from application settings at startup; tests build their own
``SearchConfig`` instead of patching environment variables.
"""
from __future__ import annotations

from dataclasses import dataclass

from app.core.config import settings


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for semantic mentor search."""

    embedding_provider: str = "openai"
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    embedding_timeout_s: float = 2.0
    max_retries: int = 0

    match_threshold: float = 0.7
    default_limit: int = 10
    max_limit: int = 50

    @classmethod
    def from_settings(cls) -> "SearchConfig":
        return cls(
            embedding_provider=settings.embedding_provider,
            embedding_model=settings.embedding_model,
            embedding_dimensions=settings.embedding_dimensions,
            embedding_timeout_s=settings.embedding_timeout_seconds,
            match_threshold=settings.search_match_threshold,
            default_limit=settings.search_default_limit,
            max_limit=settings.search_max_limit,
        )

    def clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            return self.default_limit
        return max(1, min(int(limit), self.max_limit))


_config: SearchConfig | None = None


def get_search_config() -> SearchConfig:
    global _config
    if _config is None:
        _config = SearchConfig.from_settings()
    return _config
