"""Catalogue reconciliation for bill line items.

Given the submitted line items, the reconciler maps every name onto its
catalogue row, creating rows for names never seen before, and decorates
each item with the row's id, availability and effective price.

Uniqueness of ``vegetables.name`` is enforced by the database.  A
``select`` followed by an ``insert`` can still lose a race against a
concurrent bill introducing the same name; the losing insert hits the
unique constraint, the reconciler rolls back, looks the names up again
(the competing writer has committed by then) and carries on with the
existing rows.  Callers never see the collision.

Catalogue inserts are committed before the bill is written.  They are
reference data and are intentionally not rolled back when the bill
insert later fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vegbills.core.config import settings
from vegbills.core.exceptions import ConflictError, UniqueConstraintRace
from vegbills.core.observability import sentry_breadcrumb
from vegbills.models.schemas import BillItemCreate, BillItemRead
from vegbills.models.tables import Vegetable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogueEntry:
    """Detached snapshot of a catalogue row (safe across rollbacks)."""

    id: str
    name: str
    is_available: bool
    has_fixed_price: bool
    fixed_price: Optional[Decimal]

    @classmethod
    def from_row(cls, row: Vegetable) -> "CatalogueEntry":
        return cls(
            id=row.id,
            name=row.name,
            is_available=True if row.is_available is None else bool(row.is_available),
            has_fixed_price=bool(row.has_fixed_price),
            fixed_price=Decimal(row.fixed_price) if row.fixed_price is not None else None,
        )


@dataclass(frozen=True)
class ResolvedItem:
    """Line item carrying its catalogue identity and effective price."""

    id: str
    name: str
    quantity: Decimal
    price: Decimal
    is_available: bool
    has_fixed_price: bool
    fixed_price: Optional[Decimal]
    item_total: Optional[Decimal] = None

    def with_total(self, total: Decimal) -> "ResolvedItem":
        return replace(self, item_total=total)

    def to_json(self) -> dict:
        return BillItemRead(
            id=self.id,
            name=self.name,
            quantity=self.quantity,
            price=self.price,
            item_total=self.item_total,
            is_available=self.is_available,
            has_fixed_price=self.has_fixed_price,
            fixed_price=self.fixed_price,
        ).model_dump(mode="json", by_alias=True)


@dataclass
class ReconcileResult:
    items: List[ResolvedItem]
    created: List[CatalogueEntry] = field(default_factory=list)
    raced: List[str] = field(default_factory=list)


class CatalogueReconciler:
    """Resolve submitted line items against the vegetable catalogue."""

    def __init__(self, db: AsyncSession, max_attempts: Optional[int] = None):
        self.db = db
        self.max_attempts = max_attempts or settings.RECONCILE_MAX_ATTEMPTS

    async def reconcile(self, items: Sequence[BillItemCreate]) -> ReconcileResult:
        # Distinct names in submission order; duplicates stay separate line items
        names = list(dict.fromkeys(item.name for item in items))
        catalogue = await self.lookup(names)
        created: List[CatalogueEntry] = []
        raced: List[str] = []

        missing = [n for n in names if n not in catalogue]
        attempts = 0
        while missing:
            attempts += 1
            try:
                rows = await self.insert_missing(missing)
            except UniqueConstraintRace as race:
                raced.extend(race.names)
                if attempts >= self.max_attempts:
                    logger.error("Catalogue insert kept colliding for %s after %d attempts", race.names, attempts)
                    raise ConflictError(
                        "Could not resolve catalogue entries",
                        details={"names": race.names, "attempts": attempts},
                    )
                logger.info("Catalogue insert raced for %s; re-reading", race.names)
                sentry_breadcrumb("catalogue", "reconcile.unique_race", data={"names": race.names})
                catalogue.update(await self.lookup(race.names))
                missing = [n for n in names if n not in catalogue]
                continue
            created.extend(rows)
            catalogue.update({row.name: row for row in rows})
            missing = [n for n in names if n not in catalogue]

        resolved = [self._resolve(item, catalogue[item.name]) for item in items]
        logger.info(
            "Reconciled %d line items (%d distinct names, %d created, %d raced)",
            len(resolved), len(names), len(created), len(raced),
        )
        return ReconcileResult(items=resolved, created=created, raced=raced)

    async def lookup(self, names: Iterable[str]) -> Dict[str, CatalogueEntry]:
        """Return existing catalogue rows keyed by their exact name."""
        wanted = list(dict.fromkeys(names))
        if not wanted:
            return {}
        result = await self.db.execute(select(Vegetable).where(Vegetable.name.in_(wanted)))
        found: Dict[str, CatalogueEntry] = {}
        for row in result.scalars().all():
            entry = CatalogueEntry.from_row(row)
            self._check_identity(entry, wanted)
            if entry.name in found:
                raise ConflictError(
                    "Multiple catalogue rows share one name",
                    details={"name": entry.name, "ids": [found[entry.name].id, entry.id]},
                )
            found[entry.name] = entry
        return found

    async def insert_missing(self, names: Sequence[str]) -> List[CatalogueEntry]:
        """Insert one row per distinct unseen name in a single batch and commit it."""
        params = [
            {"name": name, "is_available": True, "has_fixed_price": False, "fixed_price": None}
            for name in names
        ]
        logger.info("Creating %d catalogue entries: %s", len(params), list(names))
        try:
            result = await self.db.scalars(insert(Vegetable).returning(Vegetable), params)
            rows = [CatalogueEntry.from_row(row) for row in result.all()]
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise UniqueConstraintRace(names) from exc
        for entry in rows:
            self._check_identity(entry, names)
        return rows

    @staticmethod
    def _check_identity(entry: CatalogueEntry, names: Sequence[str]) -> None:
        if entry.name not in names:
            logger.error("Catalogue returned %r (id=%s) for query %s", entry.name, entry.id, list(names))
            raise ConflictError(
                "Catalogue row name does not match the queried name",
                details={"id": entry.id, "name": entry.name},
            )

    @staticmethod
    def _resolve(item: BillItemCreate, entry: CatalogueEntry) -> ResolvedItem:
        if entry.name != item.name:
            raise ConflictError(
                "Catalogue row name does not match the line item",
                details={"id": entry.id, "name": entry.name, "item": item.name},
            )
        price = item.price
        if entry.has_fixed_price:
            if entry.fixed_price is None or entry.fixed_price <= 0:
                raise ConflictError(
                    "Fixed-price catalogue row has no positive fixedPrice",
                    details={"id": entry.id, "name": entry.name},
                )
            price = entry.fixed_price
        return ResolvedItem(
            id=entry.id,
            name=item.name,
            quantity=item.quantity,
            price=price,
            is_available=entry.is_available,
            has_fixed_price=entry.has_fixed_price,
            fixed_price=entry.fixed_price if entry.has_fixed_price else None,
        )


__all__ = ["CatalogueReconciler", "CatalogueEntry", "ResolvedItem", "ReconcileResult"]
