"""API routes for providers."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status

from vegbills.api.dependencies import get_provider_service
from vegbills.core.config import settings
from vegbills.models.schemas import ProviderCreate, ProviderRead
from vegbills.services.directory_service import ProviderService

router = APIRouter(prefix=f"{settings.API_PREFIX}/providers", tags=["providers"])


@router.get("", response_model=List[ProviderRead])
async def list_providers(service: ProviderService = Depends(get_provider_service)) -> List[Dict[str, Any]]:
    return await service.list_providers()


@router.post("", response_model=ProviderRead, status_code=status.HTTP_201_CREATED)
async def create_provider(
    payload: ProviderCreate,
    service: ProviderService = Depends(get_provider_service),
) -> ProviderRead:
    return await service.create_provider(payload)
