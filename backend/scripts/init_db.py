"""Initialize database tables, optionally loading sample data.

Usage:
    python scripts/init_db.py [--seed]
"""

import argparse
import asyncio
import logging

from vegbills.core import database
from vegbills.core.observability import configure_logging
from vegbills.services.cache import close_cache, get_cache
from vegbills.services.seed import seed_sample_data

logger = logging.getLogger("init_db")


async def main(seed: bool) -> None:
    logger.info("Initializing database tables on %s", database.get_db_debug_info()["url"])
    await database.init_db()
    if seed:
        async with database.AsyncSessionLocal() as session:
            created = await seed_sample_data(session, await get_cache())
        logger.info("Sample data %s", "created" if created else "skipped (store not empty)")
        await close_cache()
    await database.engine.dispose()
    logger.info("Database initialization complete!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="load sample providers, signers and bills")
    args = parser.parse_args()
    configure_logging()
    asyncio.run(main(args.seed))
