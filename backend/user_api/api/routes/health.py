"""Liveness endpoint reporting the active storage backend."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from user_api.core.config import Settings
from user_api.core.dependencies import get_app_settings, get_storage
from user_api.db.session import StorageHandle
from user_api.schemas.common import HealthData, HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(
    storage: StorageHandle = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse:
    return HealthResponse(data=HealthData(storage=storage.mode, environment=settings.environment))
