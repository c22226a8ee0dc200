from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from vegbills.core.exceptions import ConflictError
from vegbills.models.schemas import BillItemCreate
from vegbills.models.tables import Vegetable
from vegbills.services.reconciler import CatalogueEntry, CatalogueReconciler


def _items(*rows):
    return [BillItemCreate(name=n, price=Decimal(p), quantity=Decimal(q)) for n, p, q in rows]


async def _count(session, name):
    return (await session.execute(select(func.count(Vegetable.id)).where(Vegetable.name == name))).scalar()


@pytest.mark.asyncio
async def test_unknown_names_are_created_once_per_distinct_name(db):
    result = await CatalogueReconciler(db).reconcile(
        _items(("Tomato", "2.00", "3"), ("Tomato", "2.00", "2"), ("Carrot", "1.10", "1"))
    )
    assert [i.name for i in result.items] == ["Tomato", "Tomato", "Carrot"]
    assert result.items[0].id == result.items[1].id
    assert sorted(e.name for e in result.created) == ["Carrot", "Tomato"]
    assert await _count(db, "Tomato") == 1
    new = result.items[2]
    assert new.is_available is True
    assert new.has_fixed_price is False
    assert new.fixed_price is None
    assert new.price == Decimal("1.10")


@pytest.mark.asyncio
async def test_known_names_reuse_catalogue_rows(db):
    db.add(Vegetable(name="Onion", is_available=False))
    await db.commit()
    result = await CatalogueReconciler(db).reconcile(_items(("Onion", "0.80", "4")))
    row = (await db.execute(select(Vegetable).where(Vegetable.name == "Onion"))).scalar_one()
    assert result.created == []
    assert result.items[0].id == row.id
    assert result.items[0].is_available is False


@pytest.mark.asyncio
async def test_fixed_price_overrides_submitted_price(db):
    db.add(Vegetable(name="Potato", has_fixed_price=True, fixed_price=Decimal("2.50")))
    await db.commit()
    result = await CatalogueReconciler(db).reconcile(_items(("Potato", "99", "3")))
    item = result.items[0]
    assert item.price == Decimal("2.50")
    assert item.has_fixed_price is True
    assert item.fixed_price == Decimal("2.50")


@pytest.mark.asyncio
async def test_repeated_reconciliation_is_idempotent(db):
    first = await CatalogueReconciler(db).reconcile(_items(("Kale", "3.00", "1")))
    second = await CatalogueReconciler(db).reconcile(_items(("Kale", "3.10", "2")))
    assert first.items[0].id == second.items[0].id
    assert second.created == []
    assert await _count(db, "Kale") == 1


@pytest.mark.asyncio
async def test_names_are_case_sensitive(db):
    result = await CatalogueReconciler(db).reconcile(_items(("leek", "1", "1"), ("Leek", "1", "1")))
    assert result.items[0].id != result.items[1].id


class StaleReadReconciler(CatalogueReconciler):
    """Misses on the first lookup, as if a competing writer committed just after it."""

    def __init__(self, db, stale_reads=1, **kwargs):
        super().__init__(db, **kwargs)
        self.stale_reads = stale_reads
        self.lookups = 0

    async def lookup(self, names):
        self.lookups += 1
        if self.lookups <= self.stale_reads:
            return {}
        return await super().lookup(names)


@pytest.mark.asyncio
async def test_unique_violation_is_recovered_by_re_reading(session_factory):
    async with session_factory() as competitor:
        competitor.add(Vegetable(name="Leek"))
        await competitor.commit()
        leek_id = (await competitor.execute(select(Vegetable.id).where(Vegetable.name == "Leek"))).scalar_one()

    async with session_factory() as session:
        reconciler = StaleReadReconciler(session)
        result = await reconciler.reconcile(_items(("Leek", "1.20", "2"), ("Fennel", "2.00", "1")))
        assert result.raced == ["Leek", "Fennel"]
        assert [i.name for i in result.items] == ["Leek", "Fennel"]
        assert result.items[0].id == leek_id
        # Fennel lost nothing: it was inserted on the retry
        assert [e.name for e in result.created] == ["Fennel"]
        assert await _count(session, "Leek") == 1
        assert await _count(session, "Fennel") == 1


@pytest.mark.asyncio
async def test_persistent_collisions_surface_as_conflict(db):
    db.add(Vegetable(name="Leek"))
    await db.commit()
    reconciler = StaleReadReconciler(db, stale_reads=100, max_attempts=2)
    with pytest.raises(ConflictError):
        await reconciler.reconcile(_items(("Leek", "1", "1")))


class MismatchedLookup(CatalogueReconciler):
    async def lookup(self, names):
        return {
            "Tomato": CatalogueEntry(
                id="x", name="tomato", is_available=True, has_fixed_price=False, fixed_price=None
            )
        }


@pytest.mark.asyncio
async def test_name_mismatch_is_an_integrity_fault(db):
    with pytest.raises(ConflictError):
        await MismatchedLookup(db).reconcile(_items(("Tomato", "1", "1")))
    assert (await db.execute(select(func.count(Vegetable.id)))).scalar() == 0


@pytest.mark.asyncio
async def test_lookup_rejects_rows_for_other_names(db):
    db.add(Vegetable(name="Garlic"))
    await db.commit()
    reconciler = CatalogueReconciler(db)
    reconciler._check_identity(CatalogueEntry("1", "Garlic", True, False, None), ["Garlic"])
    with pytest.raises(ConflictError):
        reconciler._check_identity(CatalogueEntry("1", "garlic", True, False, None), ["Garlic"])
