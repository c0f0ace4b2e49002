# backend/app/routes/v1/search.py
"""
Mentor search route - API v1

POST / runs semantic search, falling back to keyword matching on bios
(``fallback: true``) when embeddings are unavailable.
"""

import logging

from fastapi import APIRouter, Body, Depends

from ...api.dependencies import get_mentor_search_service
from ...schemas.search import MentorSummary, SearchRequest, SearchResponse
from ...services.search.mentor_search_service import MentorSearchService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search-v1"])


@router.post("", response_model=SearchResponse)
async def search_mentors(
    payload: SearchRequest = Body(...),
    search_service: MentorSearchService = Depends(get_mentor_search_service),
) -> SearchResponse:
    result = await search_service.search(payload.query, payload.limit)
    data = []
    for hit in result.hits:
        summary = MentorSummary.model_validate(hit.mentor)
        summary.similarity = hit.similarity
        data.append(summary)
    return SearchResponse(data=data, fallback=result.fallback, message=result.message)
