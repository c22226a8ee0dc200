"""Bill persistence coordinator.

Creating a bill runs in distinct phases, each with its own failure domain:

1. referential validation (provider, signer) - nothing written yet;
2. catalogue reconciliation - may commit new vegetables;
3. pricing - pure;
4. bill insert;
5. cache invalidation - only after the insert committed.

A failed reconciliation aborts before the bill insert, so no bill ever
references an unresolved item.  Vegetables created in phase 2 survive a
failure in phase 4.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from vegbills.core.exceptions import NotFoundError, ValidationError
from vegbills.models.schemas import BillCreate, BillItemRead, BillRead, BulkDeleteResult
from vegbills.models.tables import Bill, Provider, Signer
from vegbills.services.cache import BILLS_ALL, VEGETABLES_ALL, CacheService, bill_key
from vegbills.services.pricing import price_items
from vegbills.services.reconciler import CatalogueReconciler, ResolvedItem
from vegbills.utils.helpers import to_naive_utc, utcnow

logger = logging.getLogger(__name__)


def bill_to_read(bill: Bill) -> BillRead:
    return BillRead(
        id=bill.id,
        provider_id=bill.provider_id,
        provider_name=bill.provider_name,
        items=[BillItemRead.model_validate(item) for item in bill.items or []],
        total=Decimal(bill.total),
        date=bill.date,
        signer=bill.signer,
        created_at=bill.created_at,
    )


def bill_to_json(bill: Bill) -> Dict[str, Any]:
    return bill_to_read(bill).model_dump(mode="json", by_alias=True)


class BillService:
    """Create, read and bulk-delete bills with cache-aside reads."""

    def __init__(self, db: AsyncSession, cache: CacheService):
        self.db = db
        self.cache = cache

    # --- Reads ---------------------------------------------------------
    async def list_bills(self) -> List[Dict[str, Any]]:
        async def load() -> List[Dict[str, Any]]:
            result = await self.db.execute(select(Bill).order_by(Bill.date.desc(), Bill.created_at.desc()))
            bills = [bill_to_json(b) for b in result.scalars().all()]
            logger.info("Fetched %d bills from database", len(bills))
            return bills

        return await self.cache.read_through(BILLS_ALL, load)

    async def get_bill(self, bill_id: str) -> Dict[str, Any]:
        async def load() -> Dict[str, Any]:
            bill = await self.db.get(Bill, bill_id)
            if bill is None:
                logger.warning("Bill not found: %s", bill_id)
                raise NotFoundError("Bill not found", details={"id": bill_id})
            return bill_to_json(bill)

        return await self.cache.read_through(bill_key(bill_id), load)

    # --- Create --------------------------------------------------------
    async def create_bill(self, payload: BillCreate) -> BillRead:
        provider_name, signer = await self._validate_references(payload)

        async with self.cache.invalidate_on_success() as stale:
            reconciled = await CatalogueReconciler(self.db).reconcile(payload.items)
            if reconciled.created:
                stale.append(VEGETABLES_ALL)

        items, total = price_items(reconciled.items)

        async with self.cache.invalidate_on_success(BILLS_ALL) as stale:
            bill = await self._persist(payload, provider_name, signer, items, total)
            stale.append(bill_key(bill.id))

        logger.info(
            "Bill created: id=%s provider=%s total=%s items=%d",
            bill.id, provider_name, total, len(items),
        )
        return bill_to_read(bill)

    async def _validate_references(self, payload: BillCreate) -> tuple[str, str | None]:
        """Check provider and signer before any write; report every violation."""
        violations: List[Dict[str, str]] = []
        provider = await self.db.get(Provider, payload.provider_id)
        provider_name = payload.provider_name
        if provider is None:
            violations.append({"field": "providerId", "message": "Unknown provider"})
        elif provider.name != payload.provider_name:
            violations.append({
                "field": "providerName",
                "message": f"Does not match provider name {provider.name!r}",
            })
        signer = payload.signer
        if signer is not None:
            found = await self.db.execute(select(Signer.id).where(Signer.name == signer))
            if found.scalar_one_or_none() is None:
                violations.append({"field": "signer", "message": "Unknown signer"})
        if violations:
            raise ValidationError(violations)
        return provider_name, signer

    async def _persist(
        self,
        payload: BillCreate,
        provider_name: str,
        signer: str | None,
        items: List[ResolvedItem],
        total: Decimal,
    ) -> Bill:
        now = utcnow()
        bill = Bill(
            provider_id=payload.provider_id,
            provider_name=provider_name,
            items=[item.to_json() for item in items],
            total=total,
            date=to_naive_utc(payload.date) if payload.date else now,
            signer=signer,
            created_at=now,
        )
        self.db.add(bill)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return bill

    # --- Administrative ------------------------------------------------
    async def delete_bills_for_provider(self, provider_name: str) -> BulkDeleteResult:
        result = await self.db.execute(select(Bill).where(Bill.provider_name == provider_name))
        doomed = [bill_to_read(b) for b in result.scalars().all()]

        async with self.cache.invalidate_on_success(BILLS_ALL) as stale:
            await self.db.execute(delete(Bill).where(Bill.id.in_([b.id for b in doomed])))
            await self.db.commit()
            stale.extend(bill_key(b.id) for b in doomed)

        logger.info("Deleted %d bills for provider %r", len(doomed), provider_name)
        return BulkDeleteResult(
            message="Bills deleted successfully",
            count=len(doomed),
            deleted_bills=doomed,
        )


__all__ = ["BillService", "bill_to_read", "bill_to_json"]
