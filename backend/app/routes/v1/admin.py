# backend/app/routes/v1/admin.py
"""Admin dashboard routes - API v1."""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends

from ...api.dependencies import get_admin_metrics_service, get_optional_principal
from ...principal import Principal
from ...schemas.admin import AdminMetricsResponse
from ...schemas.base import DataResponse
from ...services.admin_metrics_service import AdminMetricsService

router = APIRouter(tags=["admin-v1"])


@router.get("/metrics", response_model=DataResponse[AdminMetricsResponse])
async def get_admin_metrics(
    principal: Optional[Principal] = Depends(get_optional_principal),
    admin_metrics_service: AdminMetricsService = Depends(get_admin_metrics_service),
) -> DataResponse[AdminMetricsResponse]:
    metrics = await asyncio.to_thread(admin_metrics_service.get_metrics_summary, principal)
    return DataResponse[AdminMetricsResponse](data=AdminMetricsResponse.model_validate(metrics))
