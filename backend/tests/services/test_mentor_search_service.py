"""Mentor search: semantic path, keyword fallback, and configuration errors."""

import asyncio
from typing import List
from unittest.mock import patch

import pytest

from app.core.exceptions import (
    ProviderNotConfiguredException,
    RepositoryException,
    ValidationException,
)
from app.models.mentor import MentorProfile
from app.services.search.circuit_breaker import CircuitBreakerConfig, CircuitBreaker
from app.services.search.embedding_provider import OpenAIEmbeddingProvider
from app.services.search.embedding_service import EmbeddingService
from app.services.search.mentor_search_service import FALLBACK_MESSAGE, MentorSearchService


class FailingProvider:
    def ensure_configured(self) -> None:
        return None

    async def embed(self, text: str) -> List[float]:
        raise RuntimeError("upstream 500")

    def get_model_name(self) -> str:
        return "failing"

    def get_dimensions(self) -> int:
        return 16


class SlowProvider(FailingProvider):
    async def embed(self, text: str) -> List[float]:
        await asyncio.sleep(5)
        return [1.0] * 16


class TruncatedProvider(FailingProvider):
    async def embed(self, text: str) -> List[float]:
        return [0.5] * 8


@pytest.fixture
def indexed_mentors(db, test_mentor, other_mentor, mock_embedding_provider):
    python_profile = db.get(MentorProfile, test_mentor.id)
    design_profile = db.get(MentorProfile, other_mentor.id)
    python_profile.embedding = mock_embedding_provider.generate("python backend interviews")
    design_profile.embedding = mock_embedding_provider.generate("ux portfolio reviews")
    db.commit()
    return python_profile, design_profile


def _service(db, search_config, provider, circuit):
    embedding_service = EmbeddingService(provider=provider, config=search_config, circuit=circuit)
    return MentorSearchService(db, embedding_service=embedding_service, config=search_config)


@pytest.mark.asyncio
async def test_semantic_search_ranks_matching_mentor(
    db, indexed_mentors, search_config, mock_embedding_provider, fresh_circuit
):
    python_profile, _ = indexed_mentors
    service = _service(db, search_config, mock_embedding_provider, fresh_circuit)

    result = await service.search("Python backend interviews")

    assert result.fallback is False
    assert result.message is None
    assert [hit.mentor.id for hit in result.hits] == [python_profile.id]
    assert result.hits[0].similarity == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_semantic_search_below_threshold_is_empty_not_fallback(
    db, indexed_mentors, search_config, mock_embedding_provider, fresh_circuit
):
    service = _service(db, search_config, mock_embedding_provider, fresh_circuit)

    result = await service.search("underwater basket weaving")

    assert result.fallback is False
    assert result.hits == []


@pytest.mark.asyncio
async def test_provider_error_falls_back_to_keyword_search(
    db, indexed_mentors, search_config, fresh_circuit
):
    python_profile, _ = indexed_mentors
    service = _service(db, search_config, FailingProvider(), fresh_circuit)

    result = await service.search("PYTHON")

    assert result.fallback is True
    assert result.message == FALLBACK_MESSAGE
    assert result.fallback_reason == "provider_error"
    assert [hit.mentor.id for hit in result.hits] == [python_profile.id]
    assert result.hits[0].similarity is None


@pytest.mark.asyncio
async def test_wrong_sized_vector_falls_back(db, indexed_mentors, search_config, fresh_circuit):
    service = _service(db, search_config, TruncatedProvider(), fresh_circuit)

    result = await service.search("python")

    assert result.fallback is True
    assert result.fallback_reason == "provider_error"
    assert fresh_circuit._failure_count == 1


@pytest.mark.asyncio
async def test_timeout_falls_back(db, indexed_mentors, search_config, fresh_circuit):
    service = _service(db, search_config, SlowProvider(), fresh_circuit)

    result = await service.search("portfolio")

    assert result.fallback is True
    assert result.fallback_reason == "timeout"
    assert [hit.mentor.username for hit in result.hits] == ["karan"]


@pytest.mark.asyncio
async def test_open_circuit_skips_provider(db, indexed_mentors, search_config):
    circuit = CircuitBreaker(name="test", config=CircuitBreakerConfig(failure_threshold=1))
    service = _service(db, search_config, FailingProvider(), circuit)

    await service.search("python")
    result = await service.search("python")

    assert result.fallback is True
    assert result.fallback_reason == "circuit_open"


@pytest.mark.asyncio
async def test_similarity_query_failure_falls_back(
    db, indexed_mentors, search_config, mock_embedding_provider, fresh_circuit
):
    service = _service(db, search_config, mock_embedding_provider, fresh_circuit)

    with patch.object(
        service.repository, "similarity_search", side_effect=RepositoryException("no vector ext")
    ):
        result = await service.search("python")

    assert result.fallback is True
    assert result.fallback_reason == "similarity_query_failed"


@pytest.mark.asyncio
async def test_missing_openai_key_is_a_configuration_error(
    db, indexed_mentors, search_config, fresh_circuit
):
    service = _service(db, search_config, OpenAIEmbeddingProvider(api_key=None), fresh_circuit)

    with pytest.raises(ProviderNotConfiguredException) as exc_info:
        await service.search("python")

    assert exc_info.value.code == "PROVIDER_NOT_CONFIGURED"
    assert exc_info.value.details["setting"] == "OPENAI_API_KEY"


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   ", None])
async def test_empty_query_rejected(db, search_config, mock_embedding_provider, fresh_circuit, query):
    service = _service(db, search_config, mock_embedding_provider, fresh_circuit)

    with pytest.raises(ValidationException):
        await service.search(query)


@pytest.mark.asyncio
async def test_limit_is_clamped(db, indexed_mentors, search_config, fresh_circuit):
    service = _service(db, search_config, FailingProvider(), fresh_circuit)

    result = await service.search("e", limit=1)

    assert len(result.hits) == 1


@pytest.mark.asyncio
async def test_refresh_mentor_embedding_stores_vector(
    db, test_mentor, search_config, mock_embedding_provider, fresh_circuit
):
    service = _service(db, search_config, mock_embedding_provider, fresh_circuit)

    assert await service.refresh_mentor_embedding(test_mentor.id) is True

    profile = db.get(MentorProfile, test_mentor.id)
    assert len(profile.embedding) == search_config.embedding_dimensions
