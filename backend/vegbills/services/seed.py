"""Sample data for local development.

Only runs against an empty store (no providers).  Bills are created
through :class:`BillService` so seeded data obeys the same catalogue and
rounding rules as real submissions.
"""

from __future__ import annotations

import logging
import random
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vegbills.core.config import settings
from vegbills.models.schemas import BillCreate, BillItemCreate, ProviderCreate, SignerCreate
from vegbills.models.tables import Provider
from vegbills.services.bill_service import BillService
from vegbills.services.cache import CacheService
from vegbills.services.directory_service import ProviderService, SignerService

logger = logging.getLogger(__name__)

SAMPLE_VEGETABLES = [
    "Tomato", "Cucumber", "Carrot", "Broccoli", "Spinach", "Potato", "Onion", "Lettuce",
    "Cabbage", "Peas", "Zucchini", "Eggplant", "Pepper", "Garlic", "Chili", "Corn",
]
SAMPLE_SIGNERS = ["John", "Jane", "Jim", "Jill"]


async def seed_sample_data(
    db: AsyncSession,
    cache: CacheService,
    provider_count: Optional[int] = None,
    bill_count: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> bool:
    """Populate providers, signers and bills.  Returns False if data already exists."""
    existing = (await db.execute(select(func.count(Provider.id)))).scalar() or 0
    if existing:
        logger.info("Skipping sample data: %d providers already present", existing)
        return False

    rng = rng or random.Random()
    provider_count = settings.SEED_PROVIDER_COUNT if provider_count is None else provider_count
    bill_count = settings.SEED_BILL_COUNT if bill_count is None else bill_count

    providers = []
    provider_service = ProviderService(db, cache)
    for index in range(provider_count):
        providers.append(await provider_service.create_provider(ProviderCreate(
            name=f"Provider {index + 1}",
            mobile=f"+1{rng.randint(1_000_000_000, 9_999_999_999)}",
            address=f"{rng.randint(1, 1000)} Sample St, City, State, 12345",
        )))

    signer_service = SignerService(db)
    for name in SAMPLE_SIGNERS:
        await signer_service.create_signer(SignerCreate(name=name))

    bill_service = BillService(db, cache)
    for _ in range(bill_count if providers else 0):
        provider = rng.choice(providers)
        await bill_service.create_bill(BillCreate(
            provider_id=provider.id,
            provider_name=provider.name,
            items=_random_items(rng),
            signer=rng.choice(SAMPLE_SIGNERS),
        ))

    logger.info("Sample data created: %d providers, %d bills", len(providers), bill_count if providers else 0)
    return True


def _random_items(rng: random.Random) -> List[BillItemCreate]:
    return [
        BillItemCreate(
            name=rng.choice(SAMPLE_VEGETABLES),
            quantity=Decimal(rng.randint(1, 10)),
            price=Decimal(str(round(rng.uniform(0.5, 5.5), 2))),
        )
        for _ in range(rng.randint(1, 6))
    ]
