"""Vegetable catalogue maintenance (explicit create / patch / list).

Rows created implicitly by bill reconciliation live in
``vegbills.services.reconciler``; this service covers the administrative
endpoints and keeps the fixed-price invariant on every write.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vegbills.core.exceptions import NotFoundError, ValidationError
from vegbills.models.schemas import VegetableCreate, VegetableRead, VegetableUpdate
from vegbills.models.tables import Vegetable
from vegbills.services.cache import VEGETABLES_ALL, CacheService

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = {"name": "name", "is_available": "isAvailable", "has_fixed_price": "hasFixedPrice"}


def vegetable_to_read(row: Vegetable) -> VegetableRead:
    return VegetableRead(
        id=row.id,
        name=row.name,
        is_available=row.is_available,
        has_fixed_price=row.has_fixed_price,
        fixed_price=row.fixed_price,
    )


class CatalogueService:
    def __init__(self, db: AsyncSession, cache: CacheService):
        self.db = db
        self.cache = cache

    async def list_vegetables(self) -> List[Dict[str, Any]]:
        async def load() -> List[Dict[str, Any]]:
            result = await self.db.execute(select(Vegetable).order_by(Vegetable.name))
            rows = [vegetable_to_read(v).model_dump(mode="json", by_alias=True) for v in result.scalars().all()]
            logger.info("Fetched %d vegetables from database", len(rows))
            return rows

        return await self.cache.read_through(VEGETABLES_ALL, load)

    async def create_vegetable(self, payload: VegetableCreate) -> VegetableRead:
        row = Vegetable(
            name=payload.name,
            is_available=payload.is_available,
            has_fixed_price=payload.has_fixed_price,
            fixed_price=payload.fixed_price if payload.has_fixed_price else None,
        )
        async with self.cache.invalidate_on_success(VEGETABLES_ALL):
            self.db.add(row)
            await self._commit(payload.name)
        logger.info("Created vegetable %s (%s)", row.id, row.name)
        return vegetable_to_read(row)

    async def update_vegetable(self, vegetable_id: str, payload: VegetableUpdate) -> VegetableRead:
        row = await self.db.get(Vegetable, vegetable_id)
        if row is None:
            logger.warning("Vegetable not found: %s", vegetable_id)
            raise NotFoundError("Vegetable not found", details={"id": vegetable_id})

        changes = payload.model_dump(exclude_unset=True)
        merged = {
            "name": row.name,
            "is_available": row.is_available,
            "has_fixed_price": row.has_fixed_price,
            "fixed_price": row.fixed_price,
            **changes,
        }
        nulls = [wire for attr, wire in _REQUIRED_FIELDS.items() if merged[attr] is None]
        if nulls:
            raise ValidationError([{"field": wire, "message": "May not be null"} for wire in nulls])
        if merged["has_fixed_price"] and merged["fixed_price"] is None:
            raise ValidationError.single("fixedPrice", "fixedPrice must be provided when hasFixedPrice is true")
        if not merged["has_fixed_price"]:
            merged["fixed_price"] = None

        for attr, value in merged.items():
            setattr(row, attr, value)
        async with self.cache.invalidate_on_success(VEGETABLES_ALL):
            await self._commit(merged["name"])
        logger.info("Updated vegetable %s: %s", vegetable_id, sorted(changes))
        return vegetable_to_read(row)

    async def _commit(self, name: str) -> None:
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ValidationError.single("name", f"A vegetable named {name!r} already exists") from exc


__all__ = ["CatalogueService", "vegetable_to_read"]
