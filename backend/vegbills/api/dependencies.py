"""Common dependencies for FastAPI routes.

Database sessions, the cache facade, the injected rate limiter and the
service objects built from them.  Tests replace any of these through
``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from vegbills.core.config import settings
from vegbills.core.database import get_db
from vegbills.services.bill_service import BillService
from vegbills.services.cache import CacheService, get_cache
from vegbills.services.catalogue_service import CatalogueService
from vegbills.services.directory_service import ProviderService, SignerService
from vegbills.services.rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Shared resources

async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Alias for `get_db` to be imported in routers."""
    async for session in get_db():
        yield session


async def get_cache_service() -> CacheService:
    return await get_cache()


_bills_rate_limiter = SlidingWindowRateLimiter(
    limit=settings.BILLS_RATE_LIMIT,
    window_seconds=settings.BILLS_RATE_WINDOW_SECONDS,
    max_clients=settings.RATE_LIMIT_MAX_CLIENTS,
)


def get_bills_rate_limiter() -> SlidingWindowRateLimiter:
    return _bills_rate_limiter


# -----------------------------------------------------------------------------
# Rate limiting

def client_identity(request: Request) -> str:
    """Caller identity for rate limiting: first forwarded hop, else peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()
    return request.client.host if request.client else "unknown"


async def enforce_bills_rate_limit(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_bills_rate_limiter),
) -> None:
    caller = client_identity(request)
    decision = limiter.hit(caller)
    if not decision.allowed:
        logger.warning("Rate limit exceeded for %s on %s", caller, request.url.path)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests",
            headers={"Retry-After": str(decision.retry_after)},
        )


# -----------------------------------------------------------------------------
# Services

async def get_bill_service(
    db: AsyncSession = Depends(get_db_session),
    cache: CacheService = Depends(get_cache_service),
) -> BillService:
    return BillService(db, cache)


async def get_catalogue_service(
    db: AsyncSession = Depends(get_db_session),
    cache: CacheService = Depends(get_cache_service),
) -> CatalogueService:
    return CatalogueService(db, cache)


async def get_provider_service(
    db: AsyncSession = Depends(get_db_session),
    cache: CacheService = Depends(get_cache_service),
) -> ProviderService:
    return ProviderService(db, cache)


async def get_signer_service(db: AsyncSession = Depends(get_db_session)) -> SignerService:
    return SignerService(db)
