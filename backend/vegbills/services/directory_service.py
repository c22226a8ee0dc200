"""Providers and signers: plain reference data."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vegbills.core.exceptions import ValidationError
from vegbills.models.schemas import ProviderCreate, ProviderRead, SignerCreate, SignerRead
from vegbills.models.tables import Provider, Signer
from vegbills.services.cache import PROVIDERS_ALL, CacheService

logger = logging.getLogger(__name__)


class ProviderService:
    def __init__(self, db: AsyncSession, cache: CacheService):
        self.db = db
        self.cache = cache

    async def list_providers(self) -> List[Dict[str, Any]]:
        async def load() -> List[Dict[str, Any]]:
            result = await self.db.execute(select(Provider).order_by(Provider.name))
            return [
                ProviderRead.model_validate(p).model_dump(mode="json", by_alias=True)
                for p in result.scalars().all()
            ]

        return await self.cache.read_through(PROVIDERS_ALL, load)

    async def create_provider(self, payload: ProviderCreate) -> ProviderRead:
        provider = Provider(name=payload.name, mobile=payload.mobile, address=payload.address)
        async with self.cache.invalidate_on_success(PROVIDERS_ALL):
            self.db.add(provider)
            await self.db.commit()
        logger.info("Provider created: %s (%s)", provider.id, provider.name)
        return ProviderRead.model_validate(provider)


class SignerService:
    """Signers are read straight from the store; they are never cached."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_signers(self) -> List[SignerRead]:
        result = await self.db.execute(select(Signer).order_by(Signer.name))
        return [SignerRead.model_validate(s) for s in result.scalars().all()]

    async def create_signer(self, payload: SignerCreate) -> SignerRead:
        signer = Signer(name=payload.name)
        self.db.add(signer)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ValidationError.single("name", f"A signer named {payload.name!r} already exists") from exc
        logger.info("Signer created: %s (%s)", signer.id, signer.name)
        return SignerRead.model_validate(signer)


__all__ = ["ProviderService", "SignerService"]
