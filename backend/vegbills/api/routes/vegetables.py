"""API routes for the vegetable catalogue."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status

from vegbills.api.dependencies import get_catalogue_service
from vegbills.core.config import settings
from vegbills.models.schemas import VegetableCreate, VegetableRead, VegetableUpdate
from vegbills.services.catalogue_service import CatalogueService

router = APIRouter(prefix=f"{settings.API_PREFIX}/vegetables", tags=["vegetables"])


@router.get("", response_model=List[VegetableRead])
async def list_vegetables(service: CatalogueService = Depends(get_catalogue_service)) -> List[Dict[str, Any]]:
    return await service.list_vegetables()


@router.post("", response_model=VegetableRead, status_code=status.HTTP_201_CREATED)
async def create_vegetable(
    payload: VegetableCreate,
    service: CatalogueService = Depends(get_catalogue_service),
) -> VegetableRead:
    return await service.create_vegetable(payload)


@router.patch("/{vegetable_id}", response_model=VegetableRead)
async def update_vegetable(
    vegetable_id: str,
    payload: VegetableUpdate,
    service: CatalogueService = Depends(get_catalogue_service),
) -> VegetableRead:
    """Partial update; ``hasFixedPrice=true`` still requires a positive ``fixedPrice``."""
    return await service.update_vegetable(vegetable_id, payload)
