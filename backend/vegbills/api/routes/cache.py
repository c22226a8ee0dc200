"""Administrative cache routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from vegbills.api.dependencies import get_cache_service
from vegbills.core.config import settings
from vegbills.models.schemas import CacheKeys
from vegbills.services.cache import CacheService

router = APIRouter(prefix=f"{settings.API_PREFIX}/cache", tags=["cache"])


@router.get("/keys", response_model=CacheKeys)
async def list_cache_keys(cache: CacheService = Depends(get_cache_service)) -> CacheKeys:
    keys = await cache.list_keys()
    return CacheKeys(count=len(keys), keys=sorted(keys))


@router.delete("", response_model=CacheKeys)
async def reset_cache(cache: CacheService = Depends(get_cache_service)) -> CacheKeys:
    """Full cache reset: every listed key is deleted."""
    keys = await cache.clear()
    return CacheKeys(count=len(keys), keys=sorted(keys))
